"""
Credentials and per-user defaults kept outside version control.

``local_secrets.json`` sits at the repository root (or wherever
``LOCAL_SECRETS_FILE`` points) and may hold:

    {"github_token": "...", "target_user": "octocat", "repository": "octocat/tracker"}

Environment variables and CLI flags take precedence over these values.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

SECRETS_FILENAME = "local_secrets.json"
SECRET_KEYS = ("github_token", "target_user", "repository")

logger = logging.getLogger(__name__)


def secrets_path(path: Optional[str | Path] = None) -> Path:
    """Explicit path, else ``LOCAL_SECRETS_FILE``, else the file next to the package."""
    if path:
        return Path(path).expanduser()
    override = os.getenv("LOCAL_SECRETS_FILE")
    if override:
        return Path(override).expanduser()
    return Path(__file__).resolve().parents[1] / SECRETS_FILENAME


def load_local_secrets(path: Optional[str | Path] = None) -> Dict[str, str]:
    """Return the recognised, non-empty string entries of the secrets file.

    A missing file yields ``{}``. An unreadable or malformed one is reported
    and also yields ``{}`` so configuration falls through to the environment.
    """
    source = secrets_path(path)
    if not source.exists():
        return {}
    try:
        with source.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as exc:
        logger.warning("[warn] ignoring unreadable secrets file %s: %s", source, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("[warn] ignoring secrets file %s: expected a JSON object", source)
        return {}

    unknown = sorted(set(data) - set(SECRET_KEYS))
    if unknown:
        logger.debug("ignoring unrecognised keys in %s: %s", source, ", ".join(unknown))
    return {
        key: data[key].strip()
        for key in SECRET_KEYS
        if isinstance(data.get(key), str) and data[key].strip()
    }


__all__ = ["SECRETS_FILENAME", "SECRET_KEYS", "secrets_path", "load_local_secrets"]
