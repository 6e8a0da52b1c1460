"""Derive activity and display strings for a repository record."""

from __future__ import annotations

import datetime as dt
from typing import Iterable, List, Optional

from ..activity import classify
from ..models import FormattedRepository, RepositoryRecord

NO_ISSUE_ACTIVITY = "None"
NO_RELEASE = "No release"
NO_HOMEPAGE = "No homepage"
NO_TOPICS = "No topics"
ARCHIVED = "Archived"
ACTIVE = "Active"
PRIVATE = "Private"
PUBLIC = "Public"
ENABLED = "✅"
DISABLED = "❌"


def format_size(size_kb: int) -> str:
    if size_kb >= 1024:
        return f"{size_kb // 1024} MB"
    return f"{size_kb} KB"


def format_date(value: dt.datetime) -> str:
    return value.strftime("%Y-%m-%d")


def format_release(record: RepositoryRecord) -> str:
    if record.latest_release is None:
        return NO_RELEASE
    return f"{record.latest_release.tag_name} ({format_date(record.latest_release.published_at)})"


def format_repository(record: RepositoryRecord, now: Optional[dt.datetime] = None) -> FormattedRepository:
    """Embed the ActivityInfo observed at ``now`` alongside the display strings."""
    now = now or dt.datetime.now(dt.timezone.utc)
    activity = classify(record.pushed_at, record.latest_issue_updated, now)
    return FormattedRepository(
        record=record,
        activity=activity,
        size_display=format_size(record.size),
        created_date=format_date(record.created_at),
        updated_date=format_date(record.updated_at),
        pushed_date=format_date(record.pushed_at),
        latest_issue_updated=(
            format_date(record.latest_issue_updated) if record.latest_issue_updated else NO_ISSUE_ACTIVITY
        ),
        release_info=format_release(record),
        archive_status=ARCHIVED if record.archived else ACTIVE,
        visibility=PRIVATE if record.is_private else PUBLIC,
        issues_status=ENABLED if record.has_issues else DISABLED,
        wiki_status=ENABLED if record.has_wiki else DISABLED,
        projects_status=ENABLED if record.has_projects else DISABLED,
        homepage_display=f"[{record.homepage}]({record.homepage})" if record.homepage else NO_HOMEPAGE,
        topics_display=", ".join(record.topics) if record.topics else NO_TOPICS,
    )


def format_all(records: Iterable[RepositoryRecord], now: Optional[dt.datetime] = None) -> List[FormattedRepository]:
    now = now or dt.datetime.now(dt.timezone.utc)
    return [format_repository(record, now) for record in records]


def filter_repositories(repos: Iterable[FormattedRepository],
                        include_private: bool,
                        include_archived: bool) -> List[FormattedRepository]:
    """Drop private and archived repositories unless explicitly included."""
    kept = []
    for repo in repos:
        if repo.record.is_private and not include_private:
            continue
        if repo.record.archived and not include_archived:
            continue
        kept.append(repo)
    return kept


__all__ = [
    "NO_ISSUE_ACTIVITY",
    "NO_RELEASE",
    "NO_HOMEPAGE",
    "NO_TOPICS",
    "ARCHIVED",
    "ACTIVE",
    "PRIVATE",
    "PUBLIC",
    "ENABLED",
    "DISABLED",
    "format_size",
    "format_date",
    "format_release",
    "format_repository",
    "format_all",
    "filter_repositories",
]
