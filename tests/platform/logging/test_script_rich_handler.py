"""Tests for the console log handler and logger setup."""

from __future__ import annotations

import logging
from io import StringIO
from pathlib import Path

from rich.console import Console
from rich.text import Text

from cargoscript.platform.logging import LOGGER_NAME, ScriptRichHandler, setup_logger


def _make_handler() -> ScriptRichHandler:
    console = Console(file=StringIO(), force_terminal=True, soft_wrap=True)
    return ScriptRichHandler(console=console)


def _record(level: int) -> logging.LogRecord:
    return logging.LogRecord(
        name=LOGGER_NAME,
        level=level,
        pathname="test",
        lineno=0,
        msg="",
        args=(),
        exc_info=None,
    )


def test_levels_are_prefixed() -> None:
    handler = _make_handler()

    error = handler.render_message(_record(logging.ERROR), "build failed")
    info = handler.render_message(_record(logging.INFO), "Building hello.crs")

    assert isinstance(error, Text)
    assert error.plain == "error: build failed"
    assert info.plain == "Building hello.crs"


def test_paths_are_highlighted() -> None:
    handler = _make_handler()

    rendered = handler.render_message(
        _record(logging.WARNING), "Replacing damaged cache entry /tmp/cache/abc"
    )

    assert rendered.plain == "warning: Replacing damaged cache entry /tmp/cache/abc"
    highlighted = [
        rendered.plain[span.start : span.end]
        for span in rendered.spans
        if str(span.style) == "bright_white"
    ]
    assert highlighted == ["/tmp/cache/abc"]


def test_setup_logger_adds_rotating_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "cargoscript.log"

    logger = setup_logger(log_file=log_file, console_level=logging.ERROR)
    try:
        logger.debug("written to file only")
        for handler in logger.handlers:
            handler.flush()

        assert "written to file only" in log_file.read_text(encoding="utf-8")
        console_handlers = [h for h in logger.handlers if isinstance(h, ScriptRichHandler)]
        assert [h.level for h in console_handlers] == [logging.ERROR]
    finally:
        _ = setup_logger()
