"""Repository metadata collection for an account, one repository at a time."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict, List, Optional

from ..config import PER_PAGE
from ..models import ReleaseInfo, RepositoryRecord
from .http_client import REMOTE_ERRORS, GitHubClient

logger = logging.getLogger(__name__)


def parse_timestamp(value: Optional[str]) -> Optional[dt.datetime]:
    """Parse a GitHub ISO-8601 timestamp into an aware UTC datetime."""
    if not value:
        return None
    return dt.datetime.fromisoformat(value.replace("Z", "+00:00")).astimezone(dt.timezone.utc)


class RepositoryFetcher:
    """Build full RepositoryRecords for every repository of an account."""

    def __init__(self, client: GitHubClient, per_page: int = PER_PAGE) -> None:
        self.client = client
        self.per_page = per_page

    def fetch_all(self, target_user: str) -> List[RepositoryRecord]:
        """Return records in listing order (most recently updated first).

        A failing listing page ends pagination with what was collected; a
        failing repository detail aborts the whole fetch.
        """
        logger.info("fetching repositories for %s...", target_user)
        records: List[RepositoryRecord] = []
        page = 1
        while True:
            params = {
                "per_page": self.per_page,
                "page": page,
                "sort": "updated",
                "direction": "desc",
            }
            try:
                batch = self.client.retry(
                    lambda: self.client.get(f"/users/{target_user}/repos", params)
                )
            except REMOTE_ERRORS as exc:
                logger.error("[error] repository listing failed (page %d): %s", page, exc)
                break

            if not batch:
                break

            for entry in batch:
                owner = (entry.get("owner") or {}).get("login") or target_user
                record = self.fetch_repository(owner, entry["name"])
                records.append(record)
                logger.info("  fetched %s", record.full_name)

            if len(batch) < self.per_page:
                break
            page += 1

        logger.info("fetched %d repositories in total", len(records))
        return records

    def fetch_repository(self, owner: str, repo: str) -> RepositoryRecord:
        try:
            data = self.client.retry(lambda: self.client.get(f"/repos/{owner}/{repo}"))
        except REMOTE_ERRORS as exc:
            logger.error("[error] repository detail failed for %s/%s: %s", owner, repo, exc)
            raise

        closed_issues = 0
        if data.get("has_issues"):
            try:
                closed_issues = self.fetch_closed_issue_count(owner, repo)
            except REMOTE_ERRORS as exc:
                logger.warning("[warn] closed issue count failed for %s/%s: %s", owner, repo, exc)
                closed_issues = 0

        return self._to_record(
            data,
            closed_issues=closed_issues,
            latest_release=self.fetch_latest_release(owner, repo),
            latest_issue_updated=self.fetch_latest_issue_update(owner, repo),
        )

    def fetch_latest_release(self, owner: str, repo: str) -> Optional[ReleaseInfo]:
        """Latest published release; a 404 or any lookup failure means no release."""
        try:
            data = self.client.retry(
                lambda: self.client.get_optional(f"/repos/{owner}/{repo}/releases/latest")
            )
        except REMOTE_ERRORS as exc:
            logger.warning("[warn] latest release lookup failed for %s/%s: %s", owner, repo, exc)
            return None
        if not data or not data.get("published_at"):
            return None
        return ReleaseInfo(tag_name=data.get("tag_name") or "", published_at=parse_timestamp(data["published_at"]))

    def fetch_latest_issue_update(self, owner: str, repo: str) -> Optional[dt.datetime]:
        params = {"state": "all", "sort": "updated", "direction": "desc", "per_page": 1}
        try:
            issues = self.client.retry(
                lambda: self.client.get_optional(f"/repos/{owner}/{repo}/issues", params)
            )
        except REMOTE_ERRORS as exc:
            logger.warning("[warn] latest issue lookup failed for %s/%s: %s", owner, repo, exc)
            return None
        if not issues:
            return None
        return parse_timestamp(issues[0].get("updated_at"))

    def fetch_closed_issue_count(self, owner: str, repo: str) -> int:
        """Count closed issues, excluding pull requests, stopping at the first short page."""
        count = 0
        page = 1
        while True:
            params = {"state": "closed", "per_page": self.per_page, "page": page}
            batch = self.client.retry(
                lambda: self.client.get(f"/repos/{owner}/{repo}/issues", params)
            ) or []
            count += sum(1 for issue in batch if "pull_request" not in issue)
            if len(batch) < self.per_page:
                break
            page += 1
        return count

    @staticmethod
    def _to_record(data: Dict[str, Any],
                   *,
                   closed_issues: int,
                   latest_release: Optional[ReleaseInfo],
                   latest_issue_updated: Optional[dt.datetime]) -> RepositoryRecord:
        created_at = parse_timestamp(data.get("created_at"))
        return RepositoryRecord(
            name=data["name"],
            full_name=data["full_name"],
            description=data.get("description") or "No description",
            stars=int(data.get("stargazers_count") or 0),
            forks=int(data.get("forks_count") or 0),
            watchers=int(data.get("watchers_count") or 0),
            open_issues=int(data.get("open_issues_count") or 0),
            closed_issues=closed_issues,
            size=int(data.get("size") or 0),
            language=data.get("language") or "Unknown",
            license=((data.get("license") or {}).get("name")) or "No license",
            topics=list(data.get("topics") or []),
            archived=bool(data.get("archived")),
            is_private=bool(data.get("private")),
            default_branch=data.get("default_branch") or "main",
            has_issues=bool(data.get("has_issues")),
            has_wiki=bool(data.get("has_wiki")),
            has_projects=bool(data.get("has_projects")),
            homepage=data.get("homepage") or "",
            created_at=created_at,
            updated_at=parse_timestamp(data.get("updated_at")) or created_at,
            # Empty repositories have never been pushed to.
            pushed_at=parse_timestamp(data.get("pushed_at")) or created_at,
            url=data.get("html_url") or "",
            latest_release=latest_release,
            latest_issue_updated=latest_issue_updated,
        )


__all__ = ["RepositoryFetcher", "parse_timestamp"]
