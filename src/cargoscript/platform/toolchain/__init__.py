"""Cargo/rustc toolchain adapter package."""

from __future__ import annotations

from .cargo import CargoToolchain

__all__ = ["CargoToolchain"]
