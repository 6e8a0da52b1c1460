"""Dataclasses shared by the export and sync workflows."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class RepoStatus(str, Enum):
    """Recency bucket; the value is the label persisted in snapshots and board options."""

    FREQUENT = "Frequently updated"
    REGULAR = "Regularly updated"
    OCCASIONAL = "Occasionally updated"
    RARE = "Rarely updated"
    STALE = "Stale"
    UNKNOWN = "Unknown"


class ActivityType(str, Enum):
    PUSH = "Push"
    ISSUE_UPDATE = "Issue update"


@dataclass(frozen=True)
class ReleaseInfo:
    tag_name: str
    published_at: dt.datetime


@dataclass
class RepositoryRecord:
    """One observed repository as returned by the hosting API.

    ``closed_issues`` is 0 both when the repository has none and when the
    count could not be obtained.
    """

    name: str
    full_name: str
    description: str
    stars: int
    forks: int
    watchers: int
    open_issues: int
    closed_issues: int
    size: int  # KB
    language: str
    license: str
    topics: List[str]
    archived: bool
    is_private: bool
    default_branch: str
    has_issues: bool
    has_wiki: bool
    has_projects: bool
    homepage: str
    created_at: dt.datetime
    updated_at: dt.datetime
    pushed_at: dt.datetime
    url: str
    latest_release: Optional[ReleaseInfo] = None
    latest_issue_updated: Optional[dt.datetime] = None


@dataclass(frozen=True)
class ActivityInfo:
    last_activity: dt.datetime
    activity_type: ActivityType
    days_since: int
    status: RepoStatus


@dataclass
class FormattedRepository:
    """A repository record with its derived activity and display strings."""

    record: RepositoryRecord
    activity: ActivityInfo
    size_display: str
    created_date: str
    updated_date: str
    pushed_date: str
    latest_issue_updated: str
    release_info: str
    archive_status: str
    visibility: str
    issues_status: str
    wiki_status: str
    projects_status: str
    homepage_display: str
    topics_display: str

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def full_name(self) -> str:
        return self.record.full_name


@dataclass
class TrackedItem:
    """An issue mirroring one repository; owned by the remote tracker."""

    number: int
    title: str
    state: str = "open"
    node_id: Optional[str] = None

    @property
    def is_closed(self) -> bool:
        return self.state == "closed"


@dataclass(frozen=True)
class BoardInfo:
    project_id: str
    status_field_id: str
    status_options: Dict[RepoStatus, str] = field(default_factory=dict)


__all__ = [
    "RepoStatus",
    "ActivityType",
    "ReleaseInfo",
    "RepositoryRecord",
    "ActivityInfo",
    "FormattedRepository",
    "TrackedItem",
    "BoardInfo",
]
