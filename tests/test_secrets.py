"""Tests for repo_observer.secrets local credential loading."""

import json

from repo_observer.secrets import SECRETS_FILENAME, load_local_secrets, secrets_path


def test_missing_file_returns_empty(tmp_path):
    assert load_local_secrets(tmp_path / "missing.json") == {}


def test_reads_json_object(tmp_path):
    path = tmp_path / "local_secrets.json"
    path.write_text(json.dumps({"github_token": "abc"}), encoding="utf-8")
    assert load_local_secrets(path) == {"github_token": "abc"}


def test_env_var_points_to_file(tmp_path, monkeypatch):
    path = tmp_path / "custom.json"
    path.write_text(json.dumps({"repository": "a/b"}), encoding="utf-8")
    monkeypatch.setenv("LOCAL_SECRETS_FILE", str(path))
    assert load_local_secrets() == {"repository": "a/b"}


def test_invalid_or_non_object_json_is_ignored(tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    assert load_local_secrets(broken) == {}

    listing = tmp_path / "list.json"
    listing.write_text("[1, 2]", encoding="utf-8")
    assert load_local_secrets(listing) == {}


def test_only_known_non_empty_keys_are_returned(tmp_path):
    path = tmp_path / "local_secrets.json"
    path.write_text(json.dumps({
        "github_token": "  abc  ",
        "target_user": "",
        "repository": 42,
        "es_password": "unrelated",
    }), encoding="utf-8")
    assert load_local_secrets(path) == {"github_token": "abc"}


def test_secrets_path_resolution(tmp_path, monkeypatch):
    monkeypatch.delenv("LOCAL_SECRETS_FILE", raising=False)
    assert secrets_path().name == SECRETS_FILENAME
    monkeypatch.setenv("LOCAL_SECRETS_FILE", str(tmp_path / "env.json"))
    assert secrets_path() == tmp_path / "env.json"
    assert secrets_path(tmp_path / "explicit.json") == tmp_path / "explicit.json"
