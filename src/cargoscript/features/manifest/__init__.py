"""
Summary: Public API for embedded-manifest extraction.
Why: Give callers a single import path for extraction types and helpers.
"""

from __future__ import annotations

from .domain.models import BuildProfile, ExtractedScript, Manifest, ScriptKind
from .usecases.extractor import ManifestExtractor, extract_manifest

__all__ = [
    "BuildProfile",
    "ExtractedScript",
    "Manifest",
    "ManifestExtractor",
    "ScriptKind",
    "extract_manifest",
]
