"""Tests for repo_observer.config ensuring CLI, env and secrets precedence.

Run with coverage to validate configuration handling:
    pytest tests/test_config.py --maxfail=1 -v --cov=repo_observer.config --cov-report=term-missing
"""

import pytest

from repo_observer import config
from repo_observer.config import ConfigurationError

ENV_VARS = (
    "GITHUB_TOKEN", "TARGET_USER", "OUTPUT_PATH", "CSV_INPUT_PATH", "REPOSITORY",
    "PROJECT_NUMBER", "PROJECT_STATUS_FIELD", "INCLUDE_PRIVATE", "INCLUDE_ARCHIVED", "EXPORT_SUMMARY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_are_present():
    assert config.PER_PAGE == 100
    assert config.MAX_RETRIES == 6
    assert config.MAX_SECONDARY_BACKOFF_SEC == 3600
    assert config.USER_AGENT.startswith("repo-observer")


def test_env_flag(monkeypatch):
    assert config.env_flag("INCLUDE_PRIVATE") is False
    monkeypatch.setenv("INCLUDE_PRIVATE", "TRUE")
    assert config.env_flag("INCLUDE_PRIVATE") is True
    monkeypatch.setenv("INCLUDE_PRIVATE", "yes")
    assert config.env_flag("INCLUDE_PRIVATE") is False


def test_export_settings_from_env(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "env-token")
    monkeypatch.setenv("TARGET_USER", "bob")
    monkeypatch.setenv("INCLUDE_ARCHIVED", "true")
    monkeypatch.setenv("EXPORT_SUMMARY", "true")
    settings = config.resolve_export_settings(secrets={})
    assert settings.token == "env-token"
    assert settings.target_user == "bob"
    assert settings.output_path == config.DEFAULT_OUTPUT_PATH
    assert settings.include_archived is True and settings.include_private is False
    assert settings.export_summary is True


def test_cli_overrides_env_and_secrets(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "env-token")
    args = config.parse_args(["export-csv", "--token", "cli-token", "--output-path", "out/x.csv", "--include-private"])
    settings = config.resolve_export_settings(args, secrets={"github_token": "file-token"})
    assert settings.token == "cli-token"
    assert settings.output_path == "out/x.csv"
    assert settings.include_private is True


def test_secrets_file_supplies_token():
    settings = config.resolve_export_settings(secrets={"github_token": "file-token", "target_user": "carol"})
    assert settings.token == "file-token"
    assert settings.target_user == "carol"


def test_missing_token_raises():
    with pytest.raises(ConfigurationError):
        config.resolve_export_settings(secrets={})


def test_sync_settings_require_repository(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "t")
    with pytest.raises(ConfigurationError):
        config.resolve_sync_settings(secrets={})
    monkeypatch.setenv("REPOSITORY", "no-slash")
    with pytest.raises(ConfigurationError):
        config.resolve_sync_settings(secrets={})


def test_sync_settings_resolution(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "t")
    monkeypatch.setenv("REPOSITORY", "alice/tracker")
    monkeypatch.setenv("OUTPUT_PATH", "./data/repos.csv")
    monkeypatch.setenv("PROJECT_NUMBER", "4")
    settings = config.resolve_sync_settings(secrets={})
    assert (settings.owner, settings.repo) == ("alice", "tracker")
    assert settings.csv_input_path == "./data/repos.csv"
    assert settings.project_number == 4
    assert settings.project_status_field == "Status"

    monkeypatch.setenv("CSV_INPUT_PATH", "./other.csv")
    monkeypatch.setenv("PROJECT_NUMBER", "0")
    settings = config.resolve_sync_settings(secrets={})
    assert settings.csv_input_path == "./other.csv"
    assert settings.project_number is None


def test_invalid_project_number_raises(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "t")
    monkeypatch.setenv("REPOSITORY", "alice/tracker")
    monkeypatch.setenv("PROJECT_NUMBER", "abc")
    with pytest.raises(ConfigurationError):
        config.resolve_sync_settings(secrets={})


def test_parser_accepts_common_options_after_subcommand():
    args = config.parse_args([
        "sync-issues", "--token", "t", "--repository", "a/b", "--project-number", "2", "--log-file", "x.log",
    ])
    assert args.command == "sync-issues"
    assert args.project_number == 2
    assert args.log_file == "x.log"
