"""Mirror the latest repository snapshot as issues, optionally placed on a board."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from ..config import CACHE_PAGE_DELAY_SEC, ITEM_PACING_SEC, SECONDARY_COOLDOWN_SEC, SyncSettings
from ..models import BoardInfo, FormattedRepository, TrackedItem
from ..retrieval.http_client import FailureKind, GitHubClient, classify_failure
from ..snapshot.formatter import filter_repositories
from .board import BoardConfigurationError, BoardIntegration
from .body import render_issue_body
from .issue_cache import IssueCache

logger = logging.getLogger(__name__)


class SyncState(Enum):
    INIT = "init"
    CACHE_BUILT = "cache_built"
    BOARD_RESOLVED = "board_resolved"
    PROCESSING = "processing"
    DONE = "done"


@dataclass
class SyncReport:
    total: int = 0
    processed: int = 0
    errors: int = 0
    created: int = 0
    updated: int = 0
    placed: int = 0
    placement_errors: int = 0


@dataclass
class SyncContext:
    """Mutable state owned by exactly one run: the issue cache and the board memo."""

    owner: str
    repo: str
    cache: IssueCache = field(default_factory=IssueCache)
    board: Optional[BoardIntegration] = None
    board_info: Optional[BoardInfo] = None
    state: SyncState = SyncState.INIT
    report: SyncReport = field(default_factory=SyncReport)


class SyncOrchestrator:
    """Drive one sync run: build the cache, resolve the board, then upsert each repository in order."""

    def __init__(self,
                 client: GitHubClient,
                 *,
                 pacing: float = ITEM_PACING_SEC,
                 cooldown: float = SECONDARY_COOLDOWN_SEC,
                 cache_page_delay: float = CACHE_PAGE_DELAY_SEC,
                 sleep: Optional[Callable[[float], None]] = None) -> None:
        self.client = client
        self.pacing = pacing
        self.cooldown = cooldown
        self.cache_page_delay = cache_page_delay
        self.sleep = sleep or time.sleep

    def run(self, repos: List[FormattedRepository], settings: SyncSettings) -> SyncReport:
        """Sync every repository that passes the private/archived filters.

        Only board configuration errors escape; per-repository failures are
        logged and counted in the report.
        """
        logger.info("starting issue sync into %s", settings.repository)
        filtered = filter_repositories(repos, settings.include_private, settings.include_archived)
        context = SyncContext(owner=settings.owner, repo=settings.repo)
        context.report.total = len(filtered)

        # The cache must be complete before the first create.
        context.cache = IssueCache.build(
            self.client,
            context.owner,
            context.repo,
            page_delay=self.cache_page_delay,
            sleep=self.sleep,
        )
        context.state = SyncState.CACHE_BUILT

        if settings.project_number:
            self._resolve_board(context, settings)

        context.state = SyncState.PROCESSING
        logger.info("repositories to sync: %d", len(filtered))
        for index, repo in enumerate(filtered):
            try:
                self.sync_repository(context, repo)
                context.report.processed += 1
                logger.info(
                    "progress: %d/%d (errors: %d)",
                    context.report.processed, len(filtered), context.report.errors,
                )
            except Exception as exc:
                context.report.errors += 1
                logger.error(
                    "[error] failed to sync %s: status=%s message=%s",
                    repo.full_name, getattr(exc, "status_code", "N/A"), getattr(exc, "message", exc),
                )
                if classify_failure(exc) is FailureKind.SECONDARY:
                    logger.warning(
                        "[rate-limit] secondary rate limit after %d/%d repositories; pausing %ds",
                        context.report.processed, len(filtered), self.cooldown,
                    )
                    self.sleep(self.cooldown)
                    continue

            if index < len(filtered) - 1:
                self.sleep(self.pacing)

        context.state = SyncState.DONE
        report = context.report
        logger.info(
            "issue sync finished: %d/%d processed, %d errors, %d created, %d updated, %d placed",
            report.processed, report.total, report.errors, report.created, report.updated, report.placed,
        )
        return report

    def _resolve_board(self, context: SyncContext, settings: SyncSettings) -> None:
        board = BoardIntegration(
            self.client,
            context.owner,
            settings.project_number,
            settings.project_status_field,
        )
        try:
            context.board_info = board.fetch_board_info()
        except BoardConfigurationError as exc:
            logger.error("[error] %s", exc)
            raise
        except Exception as exc:
            logger.warning("[warn] could not load project info; continuing without board: %r", exc)
            return
        context.board = board
        context.state = SyncState.BOARD_RESOLVED

    def sync_repository(self, context: SyncContext, repo: FormattedRepository) -> TrackedItem:
        """Update the issue titled after ``repo`` or create it, then place it on the board."""
        logger.info("syncing %s", repo.name)
        body = render_issue_body(repo)
        issues_path = f"/repos/{context.owner}/{context.repo}/issues"

        item = context.cache.get(repo.name)
        if item is not None:
            logger.info("  updating issue #%d", item.number)
            data = self.client.retry(
                lambda: self.client.patch(f"{issues_path}/{item.number}", {"body": body})
            ) or {}
            item.node_id = item.node_id or data.get("node_id")
            context.report.updated += 1
        else:
            logger.info("  creating issue")
            data = self.client.retry(
                lambda: self.client.post(issues_path, {"title": repo.name, "body": body})
            )
            item = TrackedItem(
                number=data["number"],
                title=repo.name,
                state="open",
                node_id=data.get("node_id"),
            )
            context.cache.add(item)
            context.report.created += 1

        if context.board is not None and context.board_info is not None and not item.is_closed:
            self._place_on_board(context, repo, item)
        return item

    def _place_on_board(self, context: SyncContext, repo: FormattedRepository, item: TrackedItem) -> None:
        try:
            if not item.node_id:
                issue = self.client.retry(
                    lambda: self.client.get(f"/repos/{context.owner}/{context.repo}/issues/{item.number}")
                )
                item.node_id = issue["node_id"]
            if context.board.upsert_placement(item.node_id, repo.activity.status, context.board_info):
                context.report.placed += 1
                logger.info("  board status set to '%s'", repo.activity.status.value)
        except Exception as exc:
            context.report.placement_errors += 1
            logger.warning("[warn] board placement failed for #%d: %s", item.number, exc)


__all__ = ["SyncState", "SyncReport", "SyncContext", "SyncOrchestrator"]
