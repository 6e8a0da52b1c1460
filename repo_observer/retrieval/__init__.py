"""GitHub retrieval: HTTP client, back-off executor and repository fetcher."""

from .runner import export_csv

__all__ = ["export_csv"]
