"""
Summary: Public API for package synthesis and line mapping.
Why: Give the build and application layers one import path for synthesis types.
"""

from __future__ import annotations

from .domain.line_map import LineMap
from .usecases.synthesizer import (
    SynthesizedPackage,
    TemplateSynthesizer,
    merge_tables,
    package_name_for,
    package_name_for_kind,
)
from .usecases.toml_writer import render_toml

__all__ = [
    "LineMap",
    "SynthesizedPackage",
    "TemplateSynthesizer",
    "merge_tables",
    "package_name_for",
    "package_name_for_kind",
    "render_toml",
]
