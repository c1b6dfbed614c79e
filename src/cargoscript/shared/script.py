"""
Summary: The user-supplied script as read once per invocation.
Why: Every stage reads the same immutable bytes, path and timestamp.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from cargoscript.config.settings import SEARCH_EXTENSIONS


@dataclass(slots=True, frozen=True)
class Script:
    """Raw script input.

    Attributes:
        path: Absolute path of the script file, ``None`` for stdin or inline input.
        content: Raw bytes of the script.
        modified: Last modification timestamp, ``None`` when there is no file.
        name: Shown in diagnostics when there is no path (for example ``expr``).
    """

    path: Path | None
    content: bytes
    modified: float | None
    name: str

    @classmethod
    def from_path(cls, path: Path) -> "Script":
        """Read a script file, trying known extensions when ``path`` is missing."""

        resolved = find_script(path)
        stat = resolved.stat()
        return cls(
            path=resolved,
            content=resolved.read_bytes(),
            modified=stat.st_mtime,
            name=resolved.stem,
        )

    @classmethod
    def from_text(cls, text: str, *, name: str) -> "Script":
        """Wrap inline source (``expr``/``loop`` or stdin) as a script."""

        return cls(path=None, content=text.encode("utf-8"), modified=None, name=name)

    @property
    def display_name(self) -> str:
        """Name used in user-facing messages and remapped diagnostics."""

        if self.path is not None:
            return str(self.path)
        return f"<{self.name}>"


def find_script(path: Path) -> Path:
    """Locate a script by exact path or by appending a known extension.

    Raises:
        FileNotFoundError: When no candidate exists.
    """

    if path.is_file():
        return path.resolve()
    if not path.suffix:
        for extension in SEARCH_EXTENSIONS:
            candidate = path.with_name(f"{path.name}.{extension}")
            if candidate.is_file():
                return candidate.resolve()
    raise FileNotFoundError(f"script not found: {path}")


def source_lines(text: str) -> list[str]:
    """Split ``text`` into lines the way rustc counts them.

    Only ``\\n`` ends a line and a trailing ``\\r`` is dropped; form feeds and
    Unicode line separators stay inside their line.

    >>> source_lines("a\\r\\nb\\x0cc\\u2028d\\n")
    ['a', 'b\\x0cc\\u2028d']
    """

    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        _ = lines.pop()
    return [line.removesuffix("\r") for line in lines]


__all__ = ["Script", "find_script", "source_lines"]
