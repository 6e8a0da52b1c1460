"""Central configuration for the export and issue-sync workflows."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .secrets import load_local_secrets

USER_AGENT = "repo-observer/1.0"
BASE_URL = "https://api.github.com"
GRAPHQL_URL = "https://api.github.com/graphql"
PER_PAGE = 100
REQUEST_TIMEOUT = 90

# Retry budget and back-off schedule used by the executor (seconds).
MAX_RETRIES = 6
INITIAL_BACKOFF_SEC = 60
MAX_SECONDARY_BACKOFF_SEC = 60 * 60
PRIMARY_RESET_MARGIN_SEC = 5
RETRY_DELAY_SEC = 10

# Pacing for the issue-sync loop (seconds).
ITEM_PACING_SEC = 3
SECONDARY_COOLDOWN_SEC = 5 * 60
CACHE_PAGE_DELAY_SEC = 2

LOCAL_UTC_OFFSET_HOURS = int(os.getenv("LOCAL_UTC_OFFSET_HOURS", "9"))
DEFAULT_OUTPUT_PATH = "./output/repositories.csv"
DEFAULT_STATUS_FIELD = "Status"
DEFAULT_TARGET_USER = "octocat"


class ConfigurationError(RuntimeError):
    """Raised when a required setting is missing or malformed."""


@dataclass(frozen=True)
class ExportSettings:
    """Resolved runtime settings for the snapshot export workflow."""

    token: str
    target_user: str
    output_path: str
    include_private: bool
    include_archived: bool
    export_summary: bool


@dataclass(frozen=True)
class SyncSettings:
    """Resolved runtime settings for the issue-sync workflow."""

    token: str
    target_user: str
    repository: str
    csv_input_path: str
    project_number: Optional[int]
    project_status_field: str
    include_private: bool
    include_archived: bool

    @property
    def owner(self) -> str:
        return self.repository.split("/", 1)[0]

    @property
    def repo(self) -> str:
        return self.repository.split("/", 1)[1]


def env_flag(name: str, default: bool = False) -> bool:
    """Interpret an environment variable as a boolean; only 'true' (any case) is truthy."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() == "true"


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the CLI parser with the export-csv and sync-issues subcommands."""

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--token", default=None, help="GitHub token (defaults to GITHUB_TOKEN)")
    common.add_argument("--target-user", default=None, help="account whose repositories are observed")
    common.add_argument("--include-private", action="store_true", default=None)
    common.add_argument("--include-archived", action="store_true", default=None)
    common.add_argument("--log-file", default=None)

    parser = argparse.ArgumentParser(
        prog="repo-observer",
        description="Snapshot GitHub repositories to CSV and mirror them as tracked issues.",
    )
    sub = parser.add_subparsers(dest="command")

    export = sub.add_parser(
        "export-csv", parents=[common], help="write a dated CSV snapshot of all repositories"
    )
    export.add_argument("--output-path", default=None)
    export.add_argument("--summary", dest="export_summary", action="store_true", default=None)

    sync = sub.add_parser("sync-issues", parents=[common], help="mirror the latest snapshot as issues")
    sync.add_argument("--repository", default=None, help="destination repository, owner/repo")
    sync.add_argument("--csv-input-path", default=None)
    sync.add_argument("--project-number", type=int, default=None)
    sync.add_argument("--project-status-field", default=None)
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; accepts argv overrides for testing."""

    parser = build_arg_parser()
    return parser.parse_args(argv)


def _pick(args: argparse.Namespace, attr: str, env_value: Any) -> Any:
    value = getattr(args, attr, None)
    return env_value if value is None else value


def _resolve_common(args: argparse.Namespace, secrets: Dict[str, Any]) -> Dict[str, Any]:
    token = _pick(args, "token", os.getenv("GITHUB_TOKEN") or secrets.get("github_token"))
    if not token:
        raise ConfigurationError(
            "GitHub token is required. Set GITHUB_TOKEN or add github_token to local_secrets.json."
        )
    target_user = _pick(
        args,
        "target_user",
        os.getenv("TARGET_USER") or secrets.get("target_user") or DEFAULT_TARGET_USER,
    )
    return {
        "token": token,
        "target_user": target_user,
        "include_private": bool(_pick(args, "include_private", env_flag("INCLUDE_PRIVATE"))),
        "include_archived": bool(_pick(args, "include_archived", env_flag("INCLUDE_ARCHIVED"))),
    }


def resolve_export_settings(args: Optional[argparse.Namespace] = None,
                            secrets: Optional[Dict[str, Any]] = None) -> ExportSettings:
    """Build immutable export settings from CLI args, environment and local secrets."""

    args = args if args is not None else argparse.Namespace()
    secrets = load_local_secrets() if secrets is None else secrets
    common = _resolve_common(args, secrets)
    return ExportSettings(
        output_path=_pick(args, "output_path", os.getenv("OUTPUT_PATH") or DEFAULT_OUTPUT_PATH),
        export_summary=bool(_pick(args, "export_summary", env_flag("EXPORT_SUMMARY"))),
        **common,
    )


def _parse_project_number(raw: Any) -> Optional[int]:
    if raw is None or raw == "":
        return None
    try:
        number = int(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"PROJECT_NUMBER must be an integer, got {raw!r}") from None
    return number or None


def resolve_sync_settings(args: Optional[argparse.Namespace] = None,
                          secrets: Optional[Dict[str, Any]] = None) -> SyncSettings:
    """Build immutable sync settings; the destination repository is mandatory."""

    args = args if args is not None else argparse.Namespace()
    secrets = load_local_secrets() if secrets is None else secrets
    common = _resolve_common(args, secrets)

    repository = _pick(args, "repository", os.getenv("REPOSITORY") or secrets.get("repository"))
    if not repository or "/" not in repository:
        raise ConfigurationError("REPOSITORY must be set to the destination repository (owner/repo).")

    csv_input_path = _pick(
        args,
        "csv_input_path",
        os.getenv("CSV_INPUT_PATH") or os.getenv("OUTPUT_PATH") or DEFAULT_OUTPUT_PATH,
    )
    project_number = _parse_project_number(_pick(args, "project_number", os.getenv("PROJECT_NUMBER")))
    status_field = _pick(
        args,
        "project_status_field",
        os.getenv("PROJECT_STATUS_FIELD") or DEFAULT_STATUS_FIELD,
    )
    return SyncSettings(
        repository=repository,
        csv_input_path=csv_input_path,
        project_number=project_number,
        project_status_field=status_field,
        **common,
    )


__all__ = [
    "USER_AGENT",
    "BASE_URL",
    "GRAPHQL_URL",
    "PER_PAGE",
    "REQUEST_TIMEOUT",
    "MAX_RETRIES",
    "INITIAL_BACKOFF_SEC",
    "MAX_SECONDARY_BACKOFF_SEC",
    "PRIMARY_RESET_MARGIN_SEC",
    "RETRY_DELAY_SEC",
    "ITEM_PACING_SEC",
    "SECONDARY_COOLDOWN_SEC",
    "CACHE_PAGE_DELAY_SEC",
    "LOCAL_UTC_OFFSET_HOURS",
    "DEFAULT_OUTPUT_PATH",
    "DEFAULT_STATUS_FIELD",
    "ConfigurationError",
    "ExportSettings",
    "SyncSettings",
    "env_flag",
    "build_arg_parser",
    "parse_args",
    "resolve_export_settings",
    "resolve_sync_settings",
]
