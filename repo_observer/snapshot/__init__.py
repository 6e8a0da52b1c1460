"""CSV snapshots of formatted repository records."""
