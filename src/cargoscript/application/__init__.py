"""Application layer wiring features into user-facing services."""
