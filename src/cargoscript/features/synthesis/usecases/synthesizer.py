"""
Summary: Compose a buildable Cargo package from an extracted script.
Why: The toolchain only builds packages, so scripts need a generated manifest and entry point.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar, Final, final

from cargoscript.config.settings import (
    EXPR_PACKAGE_NAME,
    LOOP_PACKAGE_NAME,
    PACKAGE_VERSION,
    SCRIPT_PACKAGE_NAME,
)
from cargoscript.features.manifest import ExtractedScript, ScriptKind
from cargoscript.shared.errors import SynthesisError
from cargoscript.shared.script import source_lines

from ..domain.line_map import LineMap
from .templates import template_for
from .toml_writer import render_toml

# Names Cargo refuses as package names: Rust keywords and built-in crates.
RESERVED_PACKAGE_NAMES: Final[frozenset[str]] = frozenset(
    {
        "abstract", "alignof", "as", "async", "await", "become", "box", "break",
        "const", "continue", "crate", "do", "dyn", "else", "enum", "extern", "false",
        "final", "fn", "for", "if", "impl", "in", "let", "loop", "macro", "match",
        "mod", "move", "mut", "offsetof", "override", "priv", "proc", "pub", "pure",
        "ref", "return", "self", "sizeof", "static", "struct", "super", "test",
        "trait", "true", "try", "type", "typeof", "unsafe", "unsized", "use",
        "virtual", "where", "while", "yield", "alloc", "core", "proc_macro", "std",
        "build", "deps", "examples", "incremental",
    }
)


@dataclass(slots=True, frozen=True)
class SynthesizedPackage:
    """A complete package source tree ready to be written into a cache entry."""

    name: str
    manifest_text: str
    source_text: str
    line_map: LineMap

    @property
    def source_file(self) -> str:
        """File name of the single binary source inside the package directory."""

        return f"{self.name}.rs"


def package_name_for(identity: str) -> str:
    """Derive a filesystem-safe Cargo package name from a script's identity.

    >>> package_name_for("My Script.v2")
    'my_script_v2'
    >>> package_name_for("42")
    'script_42'
    """

    name = re.sub(r"[^0-9a-z_]", "_", identity.strip().lower())
    name = re.sub(r"_+", "_", name).strip("_")
    if not name or name[0].isdigit() or name in RESERVED_PACKAGE_NAMES:
        name = f"script_{name}" if name else "script"
    return name


def package_name_for_kind(kind: ScriptKind) -> str:
    """Package name for a script of ``kind``; the script's path never affects it.

    >>> package_name_for_kind(ScriptKind.LOOP)
    'script_loop'
    """

    if kind is ScriptKind.EXPRESSION:
        return package_name_for(EXPR_PACKAGE_NAME)
    if kind is ScriptKind.LOOP:
        return package_name_for(LOOP_PACKAGE_NAME)
    return SCRIPT_PACKAGE_NAME


def merge_tables(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``; non-table values replace."""

    merged: dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_tables(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


@final
class TemplateSynthesizer:
    """Turn ``(Manifest, ScriptKind, body)`` into a package manifest, source and LineMap."""

    DEFAULT_EDITION: ClassVar[str] = "2021"

    edition: str

    def __init__(self, *, edition: str = DEFAULT_EDITION) -> None:
        self.edition = edition

    def default_manifest(self, name: str, source_file: str) -> dict[str, Any]:
        """Boilerplate that makes the package a standalone buildable unit."""

        return {
            "package": {
                "name": name,
                "version": PACKAGE_VERSION,
                "edition": self.edition,
                "publish": False,
            },
            "bin": [{"name": name, "path": source_file}],
            "dependencies": {},
            # Keeps Cargo from attaching the entry to an enclosing workspace.
            "workspace": {},
        }

    def synthesize(
        self,
        extracted: ExtractedScript,
        *,
        package_name: str,
        loop_count: bool = False,
    ) -> SynthesizedPackage:
        """Compose the package for ``extracted``.

        Args:
            extracted: Output of the manifest extractor.
            package_name: Name produced by :func:`package_name_for_kind`.
            loop_count: For Loop scripts, pass a 1-based line count to the closure.

        Returns:
            SynthesizedPackage: Manifest text, source text and the line map.

        Raises:
            SynthesisError: If the composed source does not contain the body at
                the recorded offset.
        """
        body = extracted.body
        body_lines = source_lines(body)
        template = template_for(extracted.kind, count=loop_count)

        if template is None:
            source_text = body
            line_map = LineMap.identity(len(body_lines))
        else:
            source_text = template.wrap(body)
            line_map = LineMap(offset=template.offset, body_lines=len(body_lines))

        self._check_alignment(source_text, body_lines, line_map, extracted.kind)

        source_file = f"{package_name}.rs"
        table = merge_tables(
            self.default_manifest(package_name, source_file),
            extracted.manifest.table,
        )
        return SynthesizedPackage(
            name=package_name,
            manifest_text=render_toml(table),
            source_text=source_text,
            line_map=line_map,
        )

    @staticmethod
    def _check_alignment(
        source_text: str,
        body_lines: list[str],
        line_map: LineMap,
        kind: ScriptKind,
    ) -> None:
        synthesized = source_lines(source_text)
        window = synthesized[line_map.offset : line_map.offset + line_map.body_lines]
        if window != body_lines:
            raise SynthesisError(
                f"{kind.value} wrapper misaligned the script body at offset {line_map.offset}"
            )


__all__ = [
    "SynthesizedPackage",
    "TemplateSynthesizer",
    "merge_tables",
    "package_name_for",
    "package_name_for_kind",
]
