"""
Summary: Find the embedded Cargo manifest in a script and classify its kind.
Why: Scripts opt into dependencies through comments, so extraction must be exact and pure.
"""

from __future__ import annotations

import re
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar, Final, final

from cargoscript.shared.errors import ExtractionError
from cargoscript.shared.script import source_lines

from ..domain.models import BuildProfile, ExtractedScript, Manifest, ScriptKind

SCRIPT_TABLE: Final[str] = "script"
SCRIPT_TABLE_KEYS: Final[frozenset[str]] = frozenset({"kind", "profile"})


@dataclass(slots=True, frozen=True)
class _ManifestBlock:
    """An embedded manifest located in the script."""

    first_line: int
    last_line: int
    toml_text: str
    blank: bool


@final
class ManifestExtractor:
    """Extract ``(Manifest, ScriptKind, body)`` from raw script bytes.

    Two embedding conventions are recognized:

    * a fenced ```` ```cargo ```` block inside ``//!`` doc lines or a ``/*!``
      doc comment, whose interior is TOML;
    * a single ``// cargo-deps: name="version", other`` shorthand line.
    """

    SHEBANG: ClassVar[re.Pattern[str]] = re.compile(r"^#!(?!\s*\[)")
    LINE_FENCE_OPEN: ClassVar[re.Pattern[str]] = re.compile(r"^\s*//!\s*```\s*cargo\s*$")
    LINE_DOC: ClassVar[re.Pattern[str]] = re.compile(r"^\s*//!(.*)$")
    BLOCK_OPEN: ClassVar[re.Pattern[str]] = re.compile(r"^\s*/\*!")
    FENCE_OPEN: ClassVar[re.Pattern[str]] = re.compile(r"^\s*```\s*cargo\s*$")
    FENCE_CLOSE: ClassVar[re.Pattern[str]] = re.compile(r"^\s*```\s*$")
    BLOCK_LINE_PREFIX: ClassVar[re.Pattern[str]] = re.compile(r"^\s*\*(?!/) ?")
    SHORTHAND: ClassVar[re.Pattern[str]] = re.compile(r"^\s*//\s*cargo-deps\s*:(.*)$")
    SHORTHAND_ITEM: ClassVar[re.Pattern[str]] = re.compile(
        r'\s*([A-Za-z0-9_][A-Za-z0-9_-]*)\s*(?:=\s*"([^"]*)")?\s*(,|$)'
    )
    FN_MAIN: ClassVar[re.Pattern[str]] = re.compile(r"\bfn\s+main\s*\(")
    ITEM_START: ClassVar[re.Pattern[str]] = re.compile(
        r"^(?:#!?\[|use\b|fn\b|struct\b|enum\b|mod\b|extern\b|impl\b|trait\b|const\b"
        + r"|static\b|type\b|macro_rules!|pub\b|let\b|unsafe\b|async\b)"
    )

    def extract(self, content: bytes, *, kind: ScriptKind | None = None) -> ExtractedScript:
        """Extract the embedded manifest and classify the script.

        Args:
            content: Raw script bytes.
            kind: Kind forced by the caller (inline ``expr``/``loop`` input);
                takes precedence over the manifest and structural inference.

        Returns:
            ExtractedScript: Manifest, resolved kind and the blanked body.

        Raises:
            ExtractionError: The script is not UTF-8 or an embedded manifest is malformed.
        """
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ExtractionError(f"script is not valid UTF-8 ({exc.reason})") from exc

        lines = source_lines(text)
        if lines and lines[0].startswith("\ufeff"):
            lines[0] = lines[0][1:]

        blanked: set[int] = set()
        if lines and self.SHEBANG.match(lines[0]):
            blanked.add(0)

        blocks = self._find_blocks(lines)
        if len(blocks) > 1:
            raise ExtractionError(
                "more than one embedded manifest found", line=blocks[1].first_line + 1
            )

        manifest = Manifest()
        span: tuple[int, int] | None = None
        if blocks:
            block = blocks[0]
            manifest = self._parse_manifest(block)
            span = (block.first_line + 1, block.last_line + 1)
            if block.blank:
                blanked.update(range(block.first_line, block.last_line + 1))

        body_lines = ["" if index in blanked else line for index, line in enumerate(lines)]
        body = "\n".join(body_lines) + ("\n" if body_lines else "")

        resolved = kind or manifest.kind or self.infer_kind(body)
        return ExtractedScript(manifest=manifest, kind=resolved, body=body, manifest_lines=span)

    def infer_kind(self, body: str) -> ScriptKind:
        """Classify a body by structure alone."""

        significant = strip_comments(body).strip()
        if self.FN_MAIN.search(significant):
            return ScriptKind.FULL
        if not significant:
            return ScriptKind.BARE
        if ";" not in significant and not self.ITEM_START.match(significant):
            return ScriptKind.EXPRESSION
        return ScriptKind.BARE

    def _find_blocks(self, lines: list[str]) -> list[_ManifestBlock]:
        blocks: list[_ManifestBlock] = []
        index = 0
        while index < len(lines):
            line = lines[index]
            if self.LINE_FENCE_OPEN.match(line):
                block = self._read_line_block(lines, index)
                blocks.append(block)
                index = block.last_line + 1
                continue
            if self.BLOCK_OPEN.match(line):
                block, end = self._read_comment_block(lines, index)
                if block is not None:
                    blocks.append(block)
                index = end + 1
                continue
            shorthand = self.SHORTHAND.match(line)
            if shorthand:
                toml_text = self._shorthand_to_toml(shorthand.group(1), index)
                blocks.append(_ManifestBlock(index, index, toml_text, blank=True))
            index += 1
        return blocks

    def _read_line_block(self, lines: list[str], start: int) -> _ManifestBlock:
        interior: list[str] = []
        for index in range(start + 1, len(lines)):
            doc = self.LINE_DOC.match(lines[index])
            if doc is None:
                raise ExtractionError("unterminated ```cargo block in //! comment", line=start + 1)
            content = doc.group(1)
            content = content[1:] if content.startswith(" ") else content
            if self.FENCE_CLOSE.match(content):
                return _ManifestBlock(start, index, "\n".join(interior), blank=True)
            interior.append(content)
        raise ExtractionError("unterminated ```cargo block in //! comment", line=start + 1)

    def _read_comment_block(
        self, lines: list[str], start: int
    ) -> tuple[_ManifestBlock | None, int]:
        """Read a ``/*! ... */`` comment; return the manifest (if any) and its last line."""

        opener = lines[start]
        head = opener[opener.index("/*!") + 3 :]
        interior: list[str] = []
        end: int | None = None

        if "*/" in head:
            interior.append(head[: head.index("*/")])
            end = start
        else:
            interior.append(head)
            for index in range(start + 1, len(lines)):
                line = lines[index]
                if "*/" in line:
                    interior.append(line[: line.index("*/")])
                    end = index
                    break
                interior.append(line)

        stripped = [self.BLOCK_LINE_PREFIX.sub("", line, count=1) for line in interior]
        fence_start = next(
            (i for i, line in enumerate(stripped) if self.FENCE_OPEN.match(line)), None
        )
        if fence_start is None:
            return None, end if end is not None else len(lines) - 1
        if end is None:
            raise ExtractionError("unterminated /*! comment containing a manifest", line=start + 1)

        fence_end = next(
            (
                i
                for i in range(fence_start + 1, len(stripped))
                if self.FENCE_CLOSE.match(stripped[i])
            ),
            None,
        )
        if fence_end is None:
            raise ExtractionError("unterminated ```cargo block in /*! comment", line=start + 1)

        toml_text = "\n".join(stripped[fence_start + 1 : fence_end])
        whole_lines = opener.lstrip().startswith("/*!") and lines[end].rstrip().endswith("*/")
        return _ManifestBlock(start, end, toml_text, blank=whole_lines), end

    def _shorthand_to_toml(self, items: str, index: int) -> str:
        entries: list[str] = []
        position = 0
        text = items.strip()
        while position < len(text):
            match = self.SHORTHAND_ITEM.match(text, position)
            if match is None or match.end() == position:
                raise ExtractionError(
                    f"malformed cargo-deps entry near '{text[position:]}'", line=index + 1
                )
            name, version, _ = match.groups()
            version = "*" if version is None else version
            entries.append(f'{name} = "{_escape(version)}"')
            position = match.end()
        if not entries:
            raise ExtractionError("cargo-deps comment lists no dependencies", line=index + 1)
        return "[dependencies]\n" + "\n".join(entries)

    def _parse_manifest(self, block: _ManifestBlock) -> Manifest:
        try:
            table: dict[str, Any] = tomllib.loads(block.toml_text)
        except tomllib.TOMLDecodeError as exc:
            raise ExtractionError(
                f"invalid TOML in embedded manifest: {exc}", line=block.first_line + 1
            ) from exc

        script_table = table.pop(SCRIPT_TABLE, {})
        if not isinstance(script_table, Mapping):
            raise ExtractionError("[script] must be a table", line=block.first_line + 1)
        unknown = sorted(set(script_table) - SCRIPT_TABLE_KEYS)
        if unknown:
            raise ExtractionError(
                f"unknown [script] keys: {', '.join(unknown)}", line=block.first_line + 1
            )

        try:
            kind = (
                ScriptKind.from_user_input(str(script_table["kind"]))
                if "kind" in script_table
                else None
            )
            profile = (
                BuildProfile.from_user_input(str(script_table["profile"]))
                if "profile" in script_table
                else None
            )
        except ValueError as exc:
            raise ExtractionError(str(exc), line=block.first_line + 1) from exc

        dependencies = table.get("dependencies", {})
        if not isinstance(dependencies, Mapping):
            raise ExtractionError("[dependencies] must be a table", line=block.first_line + 1)
        for name, spec in dependencies.items():
            if not isinstance(spec, (str, Mapping)):
                raise ExtractionError(
                    f"dependency '{name}' must be a version string or a table",
                    line=block.first_line + 1,
                )

        return Manifest(table=table, kind=kind, profile=profile)


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def strip_comments(source: str) -> str:
    """Remove Rust line and (nested) block comments, leaving string literals intact."""

    out: list[str] = []
    i = 0
    n = len(source)
    while i < n:
        ch = source[i]
        nxt = source[i + 1] if i + 1 < n else ""
        if ch == "/" and nxt == "/":
            end = source.find("\n", i)
            i = n if end == -1 else end
            continue
        if ch == "/" and nxt == "*":
            depth = 1
            i += 2
            while i < n and depth:
                if source.startswith("/*", i):
                    depth += 1
                    i += 2
                elif source.startswith("*/", i):
                    depth -= 1
                    i += 2
                else:
                    i += 1
            out.append(" ")
            continue
        if ch == "r" and (nxt == '"' or nxt == "#"):
            raw = re.match(r'r(#*)"', source[i:])
            if raw:
                closing = '"' + raw.group(1)
                end = source.find(closing, i + raw.end())
                end = n if end == -1 else end + len(closing)
                out.append(source[i:end])
                i = end
                continue
        if ch == '"':
            j = i + 1
            while j < n and source[j] != '"':
                j += 2 if source[j] == "\\" else 1
            out.append(source[i : j + 1])
            i = j + 1
            continue
        if ch == "'":
            if nxt == "\\":
                end = source.find("'", i + 3)
                if end != -1:
                    out.append(source[i : end + 1])
                    i = end + 1
                    continue
            elif i + 2 < n and source[i + 2] == "'":
                out.append(source[i : i + 3])
                i += 3
                continue
        out.append(ch)
        i += 1
    return "".join(out)


def extract_manifest(content: bytes, *, kind: ScriptKind | None = None) -> ExtractedScript:
    """Module-level convenience wrapper around :class:`ManifestExtractor`."""

    return ManifestExtractor().extract(content, kind=kind)


__all__ = ["ManifestExtractor", "extract_manifest", "strip_comments"]
