"""Feature packages making up the script run pipeline."""
