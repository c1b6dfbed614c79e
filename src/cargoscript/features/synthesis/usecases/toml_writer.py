"""
Summary: Render nested mappings as TOML for the synthesized Cargo.toml.
Why: The standard library reads TOML but cannot write it.
"""

from __future__ import annotations

import datetime as _dt
import re
from collections.abc import Mapping, Sequence
from typing import Any, Final

_BARE_KEY: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9_-]+$")
_ESCAPES: Final[dict[str, str]] = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
}


def format_key(key: str) -> str:
    """Quote ``key`` unless it is a valid bare key."""

    return key if _BARE_KEY.match(key) else format_string(key)


def format_string(value: str) -> str:
    """Format a TOML basic string."""

    out: list[str] = []
    for ch in value:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def format_value(value: Any) -> str:
    """Format a value in inline position (right-hand side of ``key =``)."""

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return format_string(value)
    if isinstance(value, (_dt.datetime, _dt.date, _dt.time)):
        return value.isoformat()
    if isinstance(value, Mapping):
        items = ", ".join(f"{format_key(str(k))} = {format_value(v)}" for k, v in value.items())
        return "{ " + items + " }" if items else "{}"
    if isinstance(value, Sequence):
        return "[" + ", ".join(format_value(v) for v in value) + "]"
    raise TypeError(f"cannot render {type(value).__name__} as TOML")


def _is_table(value: Any) -> bool:
    return isinstance(value, Mapping)


def _is_table_array(value: Any) -> bool:
    return (
        isinstance(value, list)
        and bool(value)
        and all(isinstance(item, Mapping) for item in value)
    )


def _header(path: tuple[str, ...]) -> str:
    return ".".join(format_key(part) for part in path)


def _render_body(lines: list[str], path: tuple[str, ...], table: Mapping[str, Any]) -> None:
    for key, value in table.items():
        if _is_table(value) or _is_table_array(value):
            continue
        lines.append(f"{format_key(str(key))} = {format_value(value)}")

    for key, value in table.items():
        child = (*path, str(key))
        if _is_table(value):
            has_scalars = any(
                not (_is_table(v) or _is_table_array(v)) for v in value.values()
            )
            if has_scalars or not value:
                lines.append("")
                lines.append(f"[{_header(child)}]")
            _render_body(lines, child, value)
        elif _is_table_array(value):
            for item in value:
                lines.append("")
                lines.append(f"[[{_header(child)}]]")
                _render_body(lines, child, item)


def render_toml(table: Mapping[str, Any]) -> str:
    """Render ``table`` as a TOML document.

    Args:
        table: Mapping of keys to scalars, lists, nested mappings or lists of mappings.

    Returns:
        str: The document, ending with a newline.
    """
    lines: list[str] = []
    _render_body(lines, (), table)
    return "\n".join(lines).strip("\n") + "\n"


__all__ = ["format_key", "format_string", "format_value", "render_toml"]
