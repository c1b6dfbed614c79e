"""
Summary: Derive the content-addressed cache key for a script build.
Why: Key equality is the only admission test for reusing a built binary.
"""

from __future__ import annotations

import hashlib
from typing import NewType, final

from cargoscript.config.settings import CACHE_KEY_LENGTH, TEMPLATE_VERSION
from cargoscript.features.manifest import BuildProfile, ExtractedScript
from cargoscript.features.synthesis import SynthesizedPackage

CacheKey = NewType("CacheKey", str)


@final
class ContentHasher:
    """Fingerprint everything that affects the build output.

    Each field is framed with its name and byte length before being fed to
    SHA-256, so no two distinct tuples share a serialization.
    """

    template_version: str
    key_length: int

    def __init__(
        self,
        *,
        template_version: str = TEMPLATE_VERSION,
        key_length: int = CACHE_KEY_LENGTH,
    ) -> None:
        if not 8 <= key_length <= 64:
            raise ValueError("key_length must be between 8 and 64 hex digits")
        self.template_version = template_version
        self.key_length = key_length

    def compute(
        self,
        extracted: ExtractedScript,
        package: SynthesizedPackage,
        *,
        toolchain_identity: str,
        profile: BuildProfile,
        loop_count: bool = False,
    ) -> CacheKey:
        """Compute the cache key.

        The body is hashed with manifest lines blanked and the manifest through
        its canonical form, so reformatting the manifest block reuses the entry.
        The synthesized texts carry the edition and are named by kind only, so
        a script's path never reaches the key.

        Args:
            extracted: Extractor output (body, manifest, kind).
            package: Synthesized package built from ``extracted``.
            toolchain_identity: Opaque version string of the external toolchain.
            profile: Requested build profile.
            loop_count: Whether a Loop closure receives the line count.

        Returns:
            CacheKey: Lower-case hex digest prefix.
        """
        digest = hashlib.sha256()
        fields: tuple[tuple[str, str], ...] = (
            ("body", extracted.body),
            ("manifest", extracted.manifest.canonical()),
            ("kind", extracted.kind.value),
            ("template", self.template_version),
            ("toolchain", toolchain_identity),
            ("profile", profile.value),
            ("loop_count", "1" if loop_count else "0"),
            ("package.manifest", package.manifest_text),
            ("package.source", package.source_text),
        )
        for name, value in fields:
            data = value.encode("utf-8")
            digest.update(f"{name}:{len(data)}:".encode("ascii"))
            digest.update(data)
        return CacheKey(digest.hexdigest()[: self.key_length])


__all__ = ["CacheKey", "ContentHasher"]
