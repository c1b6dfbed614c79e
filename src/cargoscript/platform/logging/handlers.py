"""
Summary: Rich console handler tuned for a tool that shares stderr with scripts.
Why: Keep tool messages visually distinct from the executed program's output.
"""

from __future__ import annotations

import logging
import re
from typing import Any, ClassVar

from rich.logging import RichHandler
from rich.style import Style
from rich.text import Text


class ScriptRichHandler(RichHandler):
    """Rich handler that prefixes levels and highlights filesystem paths."""

    PATH_PATTERN: ClassVar[re.Pattern[str]] = re.compile(
        r"(?:[A-Za-z]:\\[^\s\\]+(?:\\[^\s\\]+)*|(?:/[^/\s]+)+/?)"
    )

    LEVEL_STYLES: ClassVar[dict[int, tuple[str, str]]] = {
        logging.ERROR: ("error: ", "red"),
        logging.WARNING: ("warning: ", "yellow"),
        logging.INFO: ("", "cyan"),
        logging.DEBUG: ("debug: ", "bright_black"),
    }

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        """Initialize the handler with compact settings.

        Args:
            *args: Positional arguments to pass to RichHandler.
            **kwargs: Keyword arguments to pass to RichHandler.
        """
        kwargs["show_time"] = False
        kwargs["show_path"] = False
        kwargs["show_level"] = False
        kwargs["rich_tracebacks"] = True
        kwargs["markup"] = False
        kwargs["omit_repeated_times"] = False
        super().__init__(*args, **kwargs)

    def _level_style(self, levelno: int) -> tuple[str, str]:
        for threshold in (logging.ERROR, logging.WARNING, logging.INFO):
            if levelno >= threshold:
                return self.LEVEL_STYLES[threshold]
        return self.LEVEL_STYLES[logging.DEBUG]

    def render_message(self, record: logging.LogRecord, message: str) -> Text:
        """Render ``message`` with a level prefix and highlighted paths.

        Args:
            record: Log record to format.
            message: Message to render.

        Returns:
            Rich Text object with formatted message.
        """
        prefix, color = self._level_style(record.levelno)
        text = Text()
        if prefix:
            text.append(prefix, style=Style(color=color, bold=True))

        cursor = 0
        for match in self.PATH_PATTERN.finditer(message):
            start, end = match.span()
            if start > cursor:
                text.append(message[cursor:start], style=Style(color=color))
            text.append(match.group(0), style=Style(color="bright_white"))
            cursor = end
        if cursor < len(message):
            text.append(message[cursor:], style=Style(color=color))
        return text


__all__ = ["ScriptRichHandler"]
