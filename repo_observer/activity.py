"""Recency classification of repositories from their activity timestamps."""

from __future__ import annotations

import datetime as dt
from typing import Dict, Optional

from .models import ActivityInfo, ActivityType, RepoStatus

# Inclusive upper bounds in days; first match wins.
STATUS_THRESHOLDS = (
    (7, RepoStatus.FREQUENT),
    (30, RepoStatus.REGULAR),
    (180, RepoStatus.OCCASIONAL),
    (365, RepoStatus.RARE),
)

STATUS_DESCRIPTIONS: Dict[RepoStatus, str] = {
    RepoStatus.FREQUENT: "updated within 7 days",
    RepoStatus.REGULAR: "updated within 8-30 days",
    RepoStatus.OCCASIONAL: "updated within 31-180 days",
    RepoStatus.RARE: "updated within 181-365 days",
    RepoStatus.STALE: "no update for 366 days or more",
    RepoStatus.UNKNOWN: "status unknown",
}

STATUS_EMOJI: Dict[RepoStatus, str] = {
    RepoStatus.FREQUENT: "🔥",
    RepoStatus.REGULAR: "✅",
    RepoStatus.OCCASIONAL: "⏰",
    RepoStatus.RARE: "⚠️",
    RepoStatus.STALE: "💤",
    RepoStatus.UNKNOWN: "❓",
}


def status_for_days(days: int) -> RepoStatus:
    """Map elapsed days to a bucket; never returns UNKNOWN."""
    for upper, status in STATUS_THRESHOLDS:
        if days <= upper:
            return status
    return RepoStatus.STALE


def classify(pushed_at: dt.datetime,
             issue_updated_at: Optional[dt.datetime],
             now: dt.datetime) -> ActivityInfo:
    """Compute the ActivityInfo of a repository observed at ``now``."""
    last_activity = pushed_at
    activity_type = ActivityType.PUSH
    if issue_updated_at is not None and issue_updated_at > pushed_at:
        last_activity = issue_updated_at
        activity_type = ActivityType.ISSUE_UPDATE

    days_since = (now - last_activity) // dt.timedelta(days=1)
    return ActivityInfo(
        last_activity=last_activity,
        activity_type=activity_type,
        days_since=days_since,
        status=status_for_days(days_since),
    )


def parse_status_label(label: Optional[str]) -> RepoStatus:
    """Map a persisted label (or enum name) back to a bucket; unrecognized text is UNKNOWN."""
    text = (label or "").strip()
    if not text:
        return RepoStatus.UNKNOWN
    for status in RepoStatus:
        if text == status.value or text.upper() == status.name:
            return status
    return RepoStatus.UNKNOWN


def parse_activity_type(label: Optional[str]) -> ActivityType:
    if (label or "").strip() == ActivityType.ISSUE_UPDATE.value:
        return ActivityType.ISSUE_UPDATE
    return ActivityType.PUSH


__all__ = [
    "STATUS_THRESHOLDS",
    "STATUS_DESCRIPTIONS",
    "STATUS_EMOJI",
    "status_for_days",
    "classify",
    "parse_status_label",
    "parse_activity_type",
]
