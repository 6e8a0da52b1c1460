"""Title-keyed index of the issues already present in the destination repository."""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional

from ..config import CACHE_PAGE_DELAY_SEC, PER_PAGE
from ..models import TrackedItem
from ..retrieval.http_client import REMOTE_ERRORS, GitHubClient

logger = logging.getLogger(__name__)


class IssueCache:
    """Maps an issue title (the mirrored repository name) to its tracked item.

    Owned by a single sync run; it is filled completely before any issue is
    created so that a title seen once is never created twice.
    """

    def __init__(self, items: Optional[Dict[str, TrackedItem]] = None) -> None:
        self._items: Dict[str, TrackedItem] = dict(items or {})

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, title: object) -> bool:
        return title in self._items

    def get(self, title: str) -> Optional[TrackedItem]:
        return self._items.get(title)

    def add(self, item: TrackedItem) -> None:
        self._items[item.title] = item

    def titles(self):
        return list(self._items)

    @classmethod
    def build(cls,
              client: GitHubClient,
              owner: str,
              repo: str,
              *,
              per_page: int = PER_PAGE,
              page_delay: float = CACHE_PAGE_DELAY_SEC,
              sleep: Optional[Callable[[float], None]] = None) -> "IssueCache":
        """Page through open and closed issues, skipping pull requests.

        A failing page stops the scan and keeps what was collected; titles
        missed that way fall through to issue creation later.
        """
        sleep = sleep or time.sleep
        cache = cls()
        logger.info("caching existing issues of %s/%s...", owner, repo)
        page = 1
        while True:
            params = {"state": "all", "per_page": per_page, "page": page}
            try:
                batch = client.retry(lambda: client.get(f"/repos/{owner}/{repo}/issues", params)) or []
            except REMOTE_ERRORS as exc:
                logger.error("[error] issue listing failed (page %d): %s", page, exc)
                break

            for issue in batch:
                if "pull_request" in issue:
                    continue
                cache.add(TrackedItem(
                    number=issue["number"],
                    title=issue.get("title") or "",
                    state=issue.get("state") or "open",
                    node_id=issue.get("node_id"),
                ))

            if len(batch) < per_page:
                break
            page += 1
            sleep(page_delay)

        logger.info("cached %d issues", len(cache))
        return cache


__all__ = ["IssueCache"]
