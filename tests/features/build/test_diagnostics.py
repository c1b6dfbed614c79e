"""Tests for remapping toolchain diagnostics into script coordinates."""

from __future__ import annotations

from pathlib import Path

from cargoscript.features.build import DiagnosticRemapper, remap_diagnostics
from cargoscript.features.synthesis import LineMap
from cargoscript.shared.errors import DiagnosticPosition

PACKAGE_DIR = Path("/cache/0123456789abcdef0123456789abcdef")
LINE_MAP = LineMap(offset=1, body_lines=5)


def _remap(text: str) -> tuple[str, tuple[DiagnosticPosition, ...]]:
    return remap_diagnostics(
        text,
        LINE_MAP,
        source_file="hello.rs",
        display_name="/home/me/hello.crs",
        package_dir=PACKAGE_DIR,
    )


def test_body_locations_point_at_the_script() -> None:
    text = (
        "error[E0425]: cannot find value `y` in this scope\n"
        f" --> {PACKAGE_DIR}/hello.rs:4:20\n"
        "  |\n"
        '4 |     println!("{}", y);\n'
        "  |                    ^ not found in this scope\n"
        "\n"
    )

    remapped, positions = _remap(text)

    assert " --> /home/me/hello.crs:3:20\n" in remapped
    assert '3 |     println!("{}", y);\n' in remapped
    assert "hello.rs" not in remapped
    assert positions == (DiagnosticPosition(line=3, column=20),)


def test_relative_locations_are_remapped() -> None:
    remapped, positions = _remap("error: oops\n --> hello.rs:2:1\n")

    assert " --> /home/me/hello.crs:1:1" in remapped
    assert positions == (DiagnosticPosition(line=1, column=1),)


def test_boilerplate_locations_refer_to_the_whole_script() -> None:
    remapped, positions = _remap(f"warning: unused\n --> {PACKAGE_DIR}/hello.rs:1:1\n")

    assert " --> /home/me/hello.crs\n" in remapped
    assert positions == (DiagnosticPosition(line=None, column=None),)


def test_package_directory_is_hidden() -> None:
    remapped, _ = _remap(f"   Compiling hello v0.1.0 ({PACKAGE_DIR})\n")

    assert remapped == "   Compiling hello v0.1.0 (/home/me/hello.crs)\n"


def test_other_files_are_left_alone() -> None:
    text = " --> /registry/src/time-0.1.25/src/lib.rs:10:5\n10 | fn x() {}\n"

    remapped, positions = _remap(text)

    assert remapped == text
    assert positions == ()


def test_similarly_named_files_are_not_remapped() -> None:
    remapped, _ = _remap(" --> src/othello.rs:3:1\n")

    assert remapped == " --> src/othello.rs:3:1\n"


def test_gutter_width_is_preserved() -> None:
    remapper = DiagnosticRemapper(
        LineMap(offset=16, body_lines=100),
        source_file="hello.rs",
        display_name="<expr>",
    )

    _ = remapper.remap_line(" --> hello.rs:20:3\n")
    gutter = remapper.remap_line("20 | let z = q;\n")

    assert gutter == " 4 | let z = q;\n"
    assert remapper.positions == [DiagnosticPosition(line=4, column=3)]


def test_round_trip_for_every_body_line() -> None:
    line_map = LineMap(offset=16, body_lines=30)

    for k in range(1, 31):
        _, positions = remap_diagnostics(
            f"error\n --> x.rs:{16 + k}:1\n",
            line_map,
            source_file="x.rs",
            display_name="x.crs",
        )
        assert positions == (DiagnosticPosition(line=k, column=1),)
