"""Sync workflow: read the latest snapshot and mirror it as issues."""

from __future__ import annotations

from typing import Optional

from ..config import SyncSettings
from ..retrieval.http_client import GitHubClient
from ..snapshot.store import SnapshotStore
from .orchestrator import SyncOrchestrator, SyncReport


def sync_issues(settings: SyncSettings,
                client: Optional[GitHubClient] = None,
                store: Optional[SnapshotStore] = None) -> SyncReport:
    store = store or SnapshotStore(settings.csv_input_path)
    repos = store.load_latest_batch()
    client = client or GitHubClient(settings.token)
    return SyncOrchestrator(client).run(repos, settings)


__all__ = ["sync_issues"]
