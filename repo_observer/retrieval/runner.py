"""Export workflow: fetch every repository of an account and append a dated snapshot."""

from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import Optional

from ..config import ExportSettings
from ..snapshot.formatter import filter_repositories, format_all
from ..snapshot.store import SnapshotStore
from .fetcher import RepositoryFetcher
from .http_client import GitHubClient

logger = logging.getLogger(__name__)


def export_csv(settings: ExportSettings,
               client: Optional[GitHubClient] = None,
               store: Optional[SnapshotStore] = None,
               now: Optional[dt.datetime] = None) -> Path:
    """Run one export; every row written shares a single observation timestamp."""
    client = client or GitHubClient(settings.token)
    store = store or SnapshotStore(settings.output_path)
    observed_at = now or dt.datetime.now(dt.timezone.utc)

    records = RepositoryFetcher(client).fetch_all(settings.target_user)
    formatted = format_all(records, observed_at)
    filtered = filter_repositories(formatted, settings.include_private, settings.include_archived)
    logger.info(
        "excluded %d private/archived repositories", len(formatted) - len(filtered)
    )

    path = store.append(filtered, observed_at)
    if settings.export_summary:
        store.append_summary(filtered, observed_at)
    return path


__all__ = ["export_csv"]
