"""Dated CSV snapshots: append batches and read back the latest one."""

from __future__ import annotations

import csv
import datetime as dt
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..activity import parse_activity_type, parse_status_label
from ..config import LOCAL_UTC_OFFSET_HOURS
from ..models import ActivityInfo, FormattedRepository, ReleaseInfo, RepositoryRecord
from .formatter import (
    ARCHIVED,
    DISABLED,
    ENABLED,
    NO_HOMEPAGE,
    NO_ISSUE_ACTIVITY,
    NO_TOPICS,
    PRIVATE,
)

logger = logging.getLogger(__name__)

YES = "Yes"
NO = "No"
NO_HOMEPAGE_CELL = "None"

FULL_COLUMNS: Sequence[Tuple[str, str]] = (
    ("exported_at_utc", "Exported at (UTC)"),
    ("exported_at_local", "Exported at (local)"),
    ("name", "Name"),
    ("full_name", "Full name"),
    ("description", "Description"),
    ("status", "Status"),
    ("activity_type", "Activity type"),
    ("days_since_activity", "Days since last activity"),
    ("stars", "Stars"),
    ("forks", "Forks"),
    ("watchers", "Watchers"),
    ("open_issues", "Open issues"),
    ("closed_issues", "Closed issues"),
    ("size", "Size"),
    ("language", "Language"),
    ("license", "License"),
    ("topics", "Topics"),
    ("archive_status", "Archive status"),
    ("visibility", "Visibility"),
    ("default_branch", "Default branch"),
    ("has_issues", "Issues enabled"),
    ("has_wiki", "Wiki enabled"),
    ("has_projects", "Projects enabled"),
    ("homepage", "Homepage"),
    ("created_date", "Created"),
    ("updated_date", "Last updated"),
    ("pushed_date", "Last push"),
    ("latest_issue_updated", "Issue last updated"),
    ("release_info", "Latest release"),
    ("url", "URL"),
)

SUMMARY_COLUMNS: Sequence[Tuple[str, str]] = (
    ("exported_at_utc", "Exported at (UTC)"),
    ("exported_at_local", "Exported at (local)"),
    ("name", "Name"),
    ("status", "Status"),
    ("stars", "Stars"),
    ("forks", "Forks"),
    ("open_issues", "Open issues"),
    ("closed_issues", "Closed issues"),
    ("language", "Language"),
    ("pushed_date", "Last push"),
    ("url", "URL"),
)

HEADER_TO_KEY: Dict[str, str] = {title: key for key, title in FULL_COLUMNS}

DATED_FILE_RE = re.compile(r"-(\d{4})-(\d{2})-(\d{2})\.csv$")
RELEASE_RE = re.compile(r"^(?P<tag>.+) \((?P<date>\d{4}-\d{2}-\d{2})\)$")
SIZE_RE = re.compile(r"^(\d+)\s*(MB|KB)$", re.IGNORECASE)


def format_utc(value: dt.datetime) -> str:
    return value.astimezone(dt.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_local(value: dt.datetime, offset_hours: int) -> str:
    local = value.astimezone(dt.timezone(dt.timedelta(hours=offset_hours)))
    return local.isoformat(timespec="milliseconds")


def parse_utc(value: Optional[str]) -> Optional[dt.datetime]:
    if not value:
        return None
    try:
        parsed = dt.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


def parse_int(value: Optional[str]) -> int:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return 0


def parse_yes_no(value: Optional[str]) -> bool:
    return (value or "").strip() == YES


def parse_size(value: Optional[str]) -> int:
    """Convert a size display string back to KB; MB values lose their remainder."""
    match = SIZE_RE.match((value or "").strip())
    if not match:
        return 0
    size = int(match.group(1))
    return size * 1024 if match.group(2).upper() == "MB" else size


def parse_date(value: Optional[str]) -> Optional[dt.datetime]:
    try:
        return dt.datetime.strptime((value or "").strip(), "%Y-%m-%d").replace(tzinfo=dt.timezone.utc)
    except ValueError:
        return None


def parse_release(value: Optional[str]) -> Optional[ReleaseInfo]:
    match = RELEASE_RE.match((value or "").strip())
    if not match:
        return None
    published = parse_date(match.group("date"))
    if published is None:
        return None
    return ReleaseInfo(tag_name=match.group("tag"), published_at=published)


def repository_to_row(repo: FormattedRepository, exported_at_utc: str, exported_at_local: str) -> Dict[str, object]:
    record = repo.record
    return {
        "exported_at_utc": exported_at_utc,
        "exported_at_local": exported_at_local,
        "name": record.name,
        "full_name": record.full_name,
        "description": record.description,
        "status": repo.activity.status.value,
        "activity_type": repo.activity.activity_type.value,
        "days_since_activity": repo.activity.days_since,
        "stars": record.stars,
        "forks": record.forks,
        "watchers": record.watchers,
        "open_issues": record.open_issues,
        "closed_issues": record.closed_issues,
        "size": repo.size_display,
        "language": record.language,
        "license": record.license,
        "topics": repo.topics_display,
        "archive_status": repo.archive_status,
        "visibility": repo.visibility,
        "default_branch": record.default_branch,
        "has_issues": YES if record.has_issues else NO,
        "has_wiki": YES if record.has_wiki else NO,
        "has_projects": YES if record.has_projects else NO,
        "homepage": record.homepage or NO_HOMEPAGE_CELL,
        "created_date": repo.created_date,
        "updated_date": repo.updated_date,
        "pushed_date": repo.pushed_date,
        "latest_issue_updated": repo.latest_issue_updated,
        "release_info": repo.release_info,
        "url": record.url,
    }


def row_to_repository(row: Dict[str, str]) -> FormattedRepository:
    """Rebuild a formatted repository from a full-schema row."""
    exported_at = parse_utc(row.get("exported_at_utc")) or dt.datetime.now(dt.timezone.utc)
    days_since = parse_int(row.get("days_since_activity"))
    homepage = (row.get("homepage") or "").strip()
    if homepage == NO_HOMEPAGE_CELL:
        homepage = ""
    topics_display = row.get("topics") or NO_TOPICS
    topics = [] if topics_display == NO_TOPICS else [t.strip() for t in topics_display.split(",") if t.strip()]
    latest_issue_updated = row.get("latest_issue_updated") or NO_ISSUE_ACTIVITY

    created_at = parse_date(row.get("created_date")) or exported_at
    record = RepositoryRecord(
        name=row.get("name") or "",
        full_name=row.get("full_name") or "",
        description=row.get("description") or "No description",
        stars=parse_int(row.get("stars")),
        forks=parse_int(row.get("forks")),
        watchers=parse_int(row.get("watchers")),
        open_issues=parse_int(row.get("open_issues")),
        closed_issues=parse_int(row.get("closed_issues")),
        size=parse_size(row.get("size")),
        language=row.get("language") or "Unknown",
        license=row.get("license") or "No license",
        topics=topics,
        archived=ARCHIVED in (row.get("archive_status") or ""),
        is_private=PRIVATE in (row.get("visibility") or ""),
        default_branch=row.get("default_branch") or "main",
        has_issues=parse_yes_no(row.get("has_issues")),
        has_wiki=parse_yes_no(row.get("has_wiki")),
        has_projects=parse_yes_no(row.get("has_projects")),
        homepage=homepage,
        created_at=created_at,
        updated_at=parse_date(row.get("updated_date")) or created_at,
        pushed_at=parse_date(row.get("pushed_date")) or created_at,
        url=row.get("url") or "",
        latest_release=parse_release(row.get("release_info")),
        latest_issue_updated=parse_date(latest_issue_updated),
    )
    activity = ActivityInfo(
        last_activity=exported_at - dt.timedelta(days=days_since),
        activity_type=parse_activity_type(row.get("activity_type")),
        days_since=days_since,
        status=parse_status_label(row.get("status")),
    )
    return FormattedRepository(
        record=record,
        activity=activity,
        size_display=row.get("size") or "0 KB",
        created_date=row.get("created_date") or "",
        updated_date=row.get("updated_date") or "",
        pushed_date=row.get("pushed_date") or "",
        latest_issue_updated=latest_issue_updated,
        release_info=row.get("release_info") or "",
        archive_status=row.get("archive_status") or "",
        visibility=row.get("visibility") or "",
        issues_status=ENABLED if record.has_issues else DISABLED,
        wiki_status=ENABLED if record.has_wiki else DISABLED,
        projects_status=ENABLED if record.has_projects else DISABLED,
        homepage_display=f"[{homepage}]({homepage})" if homepage else NO_HOMEPAGE,
        topics_display=topics_display,
    )


class SnapshotStore:
    """Append-only dated CSV files, one category directory per base path.

    ``./output/repositories.csv`` resolves to
    ``./output/repositories/YYYY/MM/repositories-YYYY-MM-DD.csv``, dated in
    the configured local offset.
    """

    def __init__(self, base_path: str | Path, utc_offset_hours: int = LOCAL_UTC_OFFSET_HOURS) -> None:
        self.base_path = Path(base_path)
        self.utc_offset_hours = utc_offset_hours

    @property
    def summary_base_path(self) -> Path:
        suffix = self.base_path.suffix or ".csv"
        return self.base_path.with_name(f"{self.base_path.stem}-summary{suffix}")

    def dated_path(self, observed_at: dt.datetime, base_path: Optional[Path] = None) -> Path:
        base = base_path or self.base_path
        local = observed_at.astimezone(dt.timezone(dt.timedelta(hours=self.utc_offset_hours)))
        stem = base.stem or "export"
        extension = base.suffix or ".csv"
        file_name = f"{stem}-{local:%Y-%m-%d}{extension}"
        return base.parent / stem / f"{local:%Y}" / f"{local:%m}" / file_name

    def append(self, repos: Iterable[FormattedRepository], observed_at: dt.datetime) -> Path:
        """Append one batch; every row carries the same observation timestamp."""
        return self._write(repos, observed_at, FULL_COLUMNS, self.base_path)

    def append_summary(self, repos: Iterable[FormattedRepository], observed_at: dt.datetime) -> Path:
        return self._write(repos, observed_at, SUMMARY_COLUMNS, self.summary_base_path)

    def _write(self,
               repos: Iterable[FormattedRepository],
               observed_at: dt.datetime,
               columns: Sequence[Tuple[str, str]],
               base_path: Path) -> Path:
        path = self.dated_path(observed_at, base_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        exported_utc = format_utc(observed_at)
        exported_local = format_local(observed_at, self.utc_offset_hours)
        append_mode = path.exists() and path.stat().st_size > 0

        count = 0
        with path.open("a" if append_mode else "w", encoding="utf-8", newline="") as handle:
            writer = csv.writer(handle)
            if not append_mode:
                writer.writerow([title for _, title in columns])
            for repo in repos:
                row = repository_to_row(repo, exported_utc, exported_local)
                writer.writerow([row[key] for key, _ in columns])
                count += 1

        logger.info("wrote %d repositories to %s", count, path)
        return path

    def snapshot_files(self) -> List[Path]:
        """Every period file of this category, newest date first."""
        if self.base_path.is_file():
            return [self.base_path]

        category_dir = self.base_path.parent / (self.base_path.stem or "export")
        if not category_dir.is_dir():
            raise FileNotFoundError(f"snapshot directory not found: {category_dir}")

        files = sorted(category_dir.rglob("*.csv"))
        if not files:
            raise FileNotFoundError(f"no snapshot files found in {category_dir}")

        def sort_key(path: Path) -> str:
            match = DATED_FILE_RE.search(path.name)
            return "".join(match.groups()) if match else ""

        return sorted(files, key=sort_key, reverse=True)

    @staticmethod
    def read_rows(path: Path) -> List[Dict[str, str]]:
        with path.open("r", encoding="utf-8-sig", newline="") as handle:
            reader = csv.DictReader(handle)
            rows = []
            for raw in reader:
                rows.append({
                    HEADER_TO_KEY.get((header or "").strip(), (header or "").strip()): (value or "").strip()
                    for header, value in raw.items()
                    if header is not None
                })
            return rows

    def load_latest_batch(self) -> List[FormattedRepository]:
        """Rows carrying the maximum observation timestamp across all period files."""
        rows: List[Dict[str, str]] = []
        for path in self.snapshot_files():
            rows.extend(self.read_rows(path))

        stamped = [(parse_utc(row.get("exported_at_utc")), row) for row in rows]
        stamped = [(ts, row) for ts, row in stamped if ts is not None]
        if not stamped:
            logger.warning("[warn] no snapshot rows with a valid export timestamp under %s", self.base_path)
            return []

        latest_ts = max(ts for ts, _ in stamped)
        latest_rows = [row for ts, row in stamped if ts == latest_ts]
        logger.info("using %d rows from the snapshot taken at %s", len(latest_rows), format_utc(latest_ts))
        return [row_to_repository(row) for row in latest_rows]


__all__ = [
    "FULL_COLUMNS",
    "SUMMARY_COLUMNS",
    "SnapshotStore",
    "format_utc",
    "format_local",
    "parse_utc",
    "parse_size",
    "parse_yes_no",
    "repository_to_row",
    "row_to_repository",
]
