"""Infrastructure adapters: logging, filesystem and the toolchain."""
