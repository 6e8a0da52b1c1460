"""Shared fixtures: fixed clock and factories for repository records."""

import datetime as dt

import pytest

from repo_observer.models import RepositoryRecord
from repo_observer.snapshot.formatter import format_repository

NOW = dt.datetime(2024, 6, 1, 12, 0, tzinfo=dt.timezone.utc)


def _record(**overrides) -> RepositoryRecord:
    name = overrides.pop("name", "demo")
    values = {
        "name": name,
        "full_name": f"alice/{name}",
        "description": "A demo repository",
        "stars": 5,
        "forks": 2,
        "watchers": 5,
        "open_issues": 1,
        "closed_issues": 3,
        "size": 2048,
        "language": "Python",
        "license": "MIT License",
        "topics": ["cli", "data"],
        "archived": False,
        "is_private": False,
        "default_branch": "main",
        "has_issues": True,
        "has_wiki": False,
        "has_projects": True,
        "homepage": "",
        "created_at": NOW - dt.timedelta(days=400),
        "updated_at": NOW - dt.timedelta(days=1),
        "pushed_at": NOW - dt.timedelta(days=2),
        "url": f"https://github.com/alice/{name}",
    }
    values.update(overrides)
    return RepositoryRecord(**values)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_record():
    return _record


@pytest.fixture
def make_repo():
    def factory(**overrides):
        return format_repository(_record(**overrides), NOW)
    return factory
