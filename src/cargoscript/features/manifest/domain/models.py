"""
Summary: Value objects describing an embedded manifest and the script kind.
Why: Extraction, synthesis and hashing agree on one immutable representation.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final


class ScriptKind(str, Enum):
    """How a script body is wrapped into a program."""

    EXPRESSION = "expr"
    BARE = "bare"
    FULL = "full"
    LOOP = "loop"

    @staticmethod
    def from_user_input(value: str) -> "ScriptKind":
        """Translate raw manifest or CLI input into the matching kind."""

        normalized = value.strip().lower()
        aliases = {"expression": "expr"}
        normalized = aliases.get(normalized, normalized)
        for kind in ScriptKind:
            if kind.value == normalized:
                return kind
        valid: Final[str] = ", ".join(k.value for k in ScriptKind)
        msg = f"Unsupported script kind '{value}'. Valid options: {valid}"
        raise ValueError(msg)


class BuildProfile(str, Enum):
    """Cargo build profile used for the synthesized package."""

    DEBUG = "debug"
    RELEASE = "release"

    @staticmethod
    def from_user_input(value: str) -> "BuildProfile":
        """Translate raw manifest, config or CLI input into the matching profile."""

        normalized = value.strip().lower()
        for profile in BuildProfile:
            if profile.value == normalized:
                return profile
        valid: Final[str] = ", ".join(p.value for p in BuildProfile)
        msg = f"Unsupported build profile '{value}'. Valid options: {valid}"
        raise ValueError(msg)


@dataclass(slots=True, frozen=True)
class Manifest:
    """Dependency and build declaration extracted from a script.

    Attributes:
        table: Cargo manifest tables declared by the script (``dependencies``,
            ``profile``, ``features``...), forwarded to the synthesized
            ``Cargo.toml``.
        kind: Explicit kind override from the ``[script]`` table.
        profile: Default build profile from the ``[script]`` table.
    """

    table: Mapping[str, Any] = field(default_factory=dict)
    kind: ScriptKind | None = None
    profile: BuildProfile | None = None

    @property
    def dependencies(self) -> Mapping[str, Any]:
        """Declared dependencies, name to version string or detailed table."""

        deps = self.table.get("dependencies", {})
        return deps if isinstance(deps, Mapping) else {}

    def is_empty(self) -> bool:
        return not self.table and self.kind is None and self.profile is None

    def with_dependencies(self, extra: Mapping[str, Any]) -> "Manifest":
        """Return a copy with ``extra`` dependencies overriding declared ones."""

        if not extra:
            return self
        table = dict(self.table)
        merged = dict(self.dependencies)
        merged.update(extra)
        table["dependencies"] = merged
        return Manifest(table=table, kind=self.kind, profile=self.profile)

    def canonical(self) -> str:
        """Serialize deterministically; formatting differences in the source vanish."""

        payload = {
            "table": self.table,
            "kind": self.kind.value if self.kind else None,
            "profile": self.profile.value if self.profile else None,
        }
        return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)


@dataclass(slots=True, frozen=True)
class ExtractedScript:
    """Result of manifest extraction.

    ``body`` has the manifest lines and any shebang replaced by empty lines, so
    line N of the body is line N of the original script.
    """

    manifest: Manifest
    kind: ScriptKind
    body: str
    manifest_lines: tuple[int, int] | None = None


__all__ = ["BuildProfile", "ExtractedScript", "Manifest", "ScriptKind"]
