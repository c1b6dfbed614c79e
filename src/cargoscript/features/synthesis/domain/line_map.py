"""
Summary: Translation between synthesized-source lines and original script lines.
Why: Diagnostics from the toolchain must point at the user's file, not generated code.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class LineMap:
    """Constant-offset mapping from synthesized lines to script lines.

    Synthesized line ``offset + k`` holds script line ``k`` for ``1 <= k <=
    body_lines``. Every other synthesized line is wrapper boilerplate and has no
    script counterpart. Line numbers are 1-based.
    """

    offset: int
    body_lines: int

    def __post_init__(self) -> None:
        if self.offset < 0 or self.body_lines < 0:
            raise ValueError("offset and body_lines must be non-negative")

    @classmethod
    def identity(cls, body_lines: int) -> "LineMap":
        return cls(offset=0, body_lines=body_lines)

    def to_original(self, synthesized_line: int) -> int | None:
        """Return the script line for ``synthesized_line`` or ``None`` for boilerplate."""

        original = synthesized_line - self.offset
        if 1 <= original <= self.body_lines:
            return original
        return None

    def to_synthesized(self, original_line: int) -> int | None:
        """Return the synthesized line holding script line ``original_line``."""

        if 1 <= original_line <= self.body_lines:
            return original_line + self.offset
        return None

    def pairs(self) -> Iterator[tuple[int, int]]:
        """Yield ``(synthesized, original)`` pairs in order."""

        for original in range(1, self.body_lines + 1):
            yield original + self.offset, original

    def to_dict(self) -> dict[str, int]:
        return {"offset": self.offset, "body_lines": self.body_lines}

    @classmethod
    def from_dict(cls, data: dict[str, int]) -> "LineMap":
        return cls(offset=int(data["offset"]), body_lines=int(data["body_lines"]))


__all__ = ["LineMap"]
