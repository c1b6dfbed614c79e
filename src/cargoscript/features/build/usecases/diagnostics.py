"""
Summary: Rewrite toolchain diagnostics from synthesized-package to script coordinates.
Why: Users must never see generated file names or wrapper line numbers.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import ClassVar, final

from cargoscript.features.synthesis import LineMap
from cargoscript.shared.errors import DiagnosticPosition


@final
class DiagnosticRemapper:
    """Stateful line-by-line rewriter for one build's output.

    ``path:line:col`` tokens naming the synthesized source become
    ``display:line:col`` when the line belongs to the script body and plain
    ``display`` when it points at wrapper boilerplate. Snippet gutters
    (``12 | code``) following such a location are renumbered too.
    """

    GUTTER: ClassVar[re.Pattern[str]] = re.compile(r"^(?P<num>\s*\d+)(?P<rest> \|.*)$")
    LOCATION_ARROW: ClassVar[re.Pattern[str]] = re.compile(r"^\s*(?:-->|:::)\s")
    LINE_SPLIT: ClassVar[re.Pattern[str]] = re.compile(r"(?<=\n)")

    line_map: LineMap
    display_name: str
    package_dir: str | None
    positions: list[DiagnosticPosition]
    _token: re.Pattern[str]
    _in_script_snippet: bool

    def __init__(
        self,
        line_map: LineMap,
        *,
        source_file: str,
        display_name: str,
        package_dir: Path | None = None,
    ) -> None:
        self.line_map = line_map
        self.display_name = display_name
        self.package_dir = str(package_dir) if package_dir is not None else None
        self.positions = []
        self._token = re.compile(
            r"(?<![\w.\-])(?:[A-Za-z]:)?(?:[^\s:]*[/\\])?"
            + re.escape(source_file)
            + r":(?P<line>\d+)(?::(?P<col>\d+))?"
        )
        self._in_script_snippet = False

    def remap_line(self, line: str) -> str:
        """Return ``line`` rewritten into script coordinates; line endings are kept."""

        body = line.rstrip("\r\n")
        return self._remap_text(body) + line[len(body) :]

    def _remap_text(self, line: str) -> str:
        if self.LOCATION_ARROW.match(line):
            self._in_script_snippet = self._token.search(line) is not None
        elif self._in_script_snippet:
            gutter = self.GUTTER.match(line)
            if gutter:
                return self._remap_gutter(gutter)
            if not line.strip():
                self._in_script_snippet = False

        remapped = self._token.sub(self._replace_token, line)
        if self.package_dir:
            remapped = remapped.replace(self.package_dir, self.display_name)
        return remapped

    def remap(self, text: str) -> str:
        return "".join(self.remap_line(line) for line in self.LINE_SPLIT.split(text) if line)

    def _replace_token(self, match: re.Match[str]) -> str:
        original = self.line_map.to_original(int(match.group("line")))
        column = int(match.group("col")) if match.group("col") else None
        if original is None:
            self.positions.append(DiagnosticPosition(line=None, column=None))
            return self.display_name
        self.positions.append(DiagnosticPosition(line=original, column=column))
        if column is None:
            return f"{self.display_name}:{original}"
        return f"{self.display_name}:{original}:{column}"

    def _remap_gutter(self, gutter: re.Match[str]) -> str:
        number = gutter.group("num")
        original = self.line_map.to_original(int(number))
        width = len(number)
        label = "" if original is None else str(original)
        return label.rjust(width) + gutter.group("rest")


def remap_diagnostics(
    text: str,
    line_map: LineMap,
    *,
    source_file: str,
    display_name: str,
    package_dir: Path | None = None,
) -> tuple[str, tuple[DiagnosticPosition, ...]]:
    """Remap a complete diagnostic text; returns the text and the positions found."""

    remapper = DiagnosticRemapper(
        line_map,
        source_file=source_file,
        display_name=display_name,
        package_dir=package_dir,
    )
    return remapper.remap(text), tuple(remapper.positions)


__all__ = ["DiagnosticRemapper", "remap_diagnostics"]
