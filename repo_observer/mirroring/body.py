"""Markdown body of the issue that mirrors one repository."""

from __future__ import annotations

from ..activity import STATUS_EMOJI
from ..models import FormattedRepository


def _table(rows) -> str:
    lines = ["| Field | Value |", "|------|------|"]
    lines.extend(f"| {label} | {value} |" for label, value in rows)
    return "\n".join(lines)


def render_issue_body(repo: FormattedRepository) -> str:
    record = repo.record
    activity = repo.activity
    status = f"{STATUS_EMOJI[activity.status]} {activity.status.value} (by {activity.activity_type.value})"

    sections = [
        f"## 📦 Repository: [{record.full_name}]({record.url})",
        "### 📝 Description and settings\n" + _table([
            ("Description", record.description),
            ("Language", record.language),
            ("License", record.license),
            ("Topics", repo.topics_display),
            ("Homepage", repo.homepage_display),
        ]),
        "### 📊 Activity\n" + _table([
            ("Stars", f"⭐ {record.stars}"),
            ("Forks", f"🍴 {record.forks}"),
            ("Watchers", f"👀 {record.watchers}"),
            ("Open issues", f"🐞 {record.open_issues}"),
            ("Closed issues", f"✔️ {record.closed_issues}"),
            ("Size", f"💾 {repo.size_display}"),
            ("Status", status),
            ("Days since last activity", activity.days_since),
        ]),
        "### ⏰ Dates\n" + _table([
            ("Created", repo.created_date),
            ("Last updated", repo.updated_date),
            ("Last push", repo.pushed_date),
            ("Issue last updated", repo.latest_issue_updated),
            ("Latest release", repo.release_info),
        ]),
        "### 🔧 State\n" + _table([
            ("Archive status", repo.archive_status),
            ("Visibility", repo.visibility),
            ("Default branch", record.default_branch),
            ("Issues", repo.issues_status),
            ("Wiki", repo.wiki_status),
            ("Projects", repo.projects_status),
        ]),
    ]
    return "\n\n".join(sections)


__all__ = ["render_issue_body"]
