"""Application services consumed by the CLI."""
