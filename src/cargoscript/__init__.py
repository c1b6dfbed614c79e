"""Run single Rust source files as scripts, with cached builds."""

__version__ = "0.1.0"
