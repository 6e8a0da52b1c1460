"""Tests for repo_observer.mirroring.board lookup, memoization and placement.

    pytest tests/test_board.py --maxfail=1 -v --cov=repo_observer.mirroring.board --cov-report=term-missing
"""

import logging
from unittest.mock import MagicMock

import pytest

from repo_observer.mirroring import board as board_mod
from repo_observer.mirroring.board import (
    BoardConfigurationError,
    BoardIntegration,
    BoardItemNotFoundError,
)
from repo_observer.models import RepoStatus
from repo_observer.retrieval.http_client import GitHubApiError, GraphQLError, retry_with_backoff


def _fields_response(options=("Frequently updated", "Regularly updated", "Stale", "Todo"), field_name="Status"):
    return {
        "user": {
            "projectV2": {
                "id": "PVT_1",
                "fields": {
                    "nodes": [
                        {},
                        {
                            "id": "FIELD_1",
                            "name": field_name,
                            "options": [{"id": f"OPT_{i}", "name": name} for i, name in enumerate(options)],
                        },
                    ]
                },
            }
        }
    }


def _client(handler, sleeps=None):
    client = MagicMock()
    if sleeps is None:
        client.retry.side_effect = lambda op: op()
    else:
        client.retry.side_effect = lambda op: retry_with_backoff(op, 2, sleep=sleeps.append)
    client.graphql.side_effect = handler
    return client


def test_fetch_board_info_maps_options_and_memoizes():
    client = _client(lambda query, variables: _fields_response())
    board = BoardIntegration(client, "alice", 3)

    info = board.fetch_board_info()
    assert info.project_id == "PVT_1"
    assert info.status_field_id == "FIELD_1"
    assert info.status_options == {
        RepoStatus.FREQUENT: "OPT_0",
        RepoStatus.REGULAR: "OPT_1",
        RepoStatus.STALE: "OPT_2",
    }
    assert board.fetch_board_info() is info
    assert client.graphql.call_count == 1
    assert client.graphql.call_args.args[1] == {"user": "alice", "number": 3}


def test_missing_board_is_configuration_error_without_retries():
    sleeps = []

    def handler(query, variables):
        raise GraphQLError([{"type": "NOT_FOUND", "message": "Could not resolve to a ProjectV2"}])

    client = _client(handler, sleeps)
    with pytest.raises(BoardConfigurationError):
        BoardIntegration(client, "alice", 99).fetch_board_info()
    assert client.graphql.call_count == 1
    assert sleeps == []


def test_null_project_is_configuration_error():
    client = _client(lambda query, variables: {"user": {"projectV2": None}})
    with pytest.raises(BoardConfigurationError):
        BoardIntegration(client, "alice", 1).fetch_board_info()


def test_missing_status_field_is_configuration_error():
    client = _client(lambda query, variables: _fields_response(field_name="Priority"))
    with pytest.raises(BoardConfigurationError):
        BoardIntegration(client, "alice", 1, "Status").fetch_board_info()


def test_transient_failure_propagates_as_remote_error():
    def handler(query, variables):
        raise GitHubApiError(502, "bad gateway")

    client = _client(handler, sleeps=[])
    with pytest.raises(GitHubApiError):
        BoardIntegration(client, "alice", 1).fetch_board_info()
    assert client.graphql.call_count == 3


def _placement_handler(calls, add_fails=False, existing=None):
    def handler(query, variables):
        calls.append((query, variables))
        if query is board_mod.BOARD_FIELDS_QUERY:
            return _fields_response(options=("Frequently updated", "Rarely updated"))
        if query is board_mod.ADD_ITEM_MUTATION:
            if add_fails:
                raise GraphQLError([{"message": "Content already exists in this project"}])
            return {"addProjectV2ItemById": {"item": {"id": "ITEM_NEW"}}}
        if query is board_mod.BOARD_ITEMS_QUERY:
            return {"node": {"items": {"nodes": existing or []}}}
        if query is board_mod.UPDATE_STATUS_MUTATION:
            return {"updateProjectV2ItemFieldValue": {"projectV2Item": {"id": variables["itemId"]}}}
        raise AssertionError("unexpected query")
    return handler


def test_upsert_sets_status_option():
    calls = []
    board = BoardIntegration(_client(_placement_handler(calls)), "alice", 1)
    assert board.upsert_placement("I_1", RepoStatus.FREQUENT) is True

    update = [v for q, v in calls if q is board_mod.UPDATE_STATUS_MUTATION]
    assert update == [{
        "projectId": "PVT_1",
        "itemId": "ITEM_NEW",
        "fieldId": "FIELD_1",
        "value": {"singleSelectOptionId": "OPT_0"},
    }]


def test_upsert_without_matching_option_warns_and_skips_update(caplog):
    calls = []
    board = BoardIntegration(_client(_placement_handler(calls)), "alice", 1)
    with caplog.at_level(logging.WARNING, logger="repo_observer.mirroring.board"):
        assert board.upsert_placement("I_1", RepoStatus.STALE) is False

    queries = [q for q, _ in calls]
    assert board_mod.ADD_ITEM_MUTATION in queries
    assert board_mod.UPDATE_STATUS_MUTATION not in queries
    assert "Stale" in caplog.text


def test_add_failure_falls_back_to_existing_item():
    calls = []
    existing = [
        {"id": "ITEM_OTHER", "content": {"id": "I_9"}},
        {"id": "ITEM_OLD", "content": {"id": "I_1"}},
        {"id": "ITEM_DRAFT", "content": None},
    ]
    board = BoardIntegration(_client(_placement_handler(calls, add_fails=True, existing=existing)), "alice", 1)
    assert board.upsert_placement("I_1", RepoStatus.RARE) is True
    update = [v for q, v in calls if q is board_mod.UPDATE_STATUS_MUTATION]
    assert update[0]["itemId"] == "ITEM_OLD"
    assert update[0]["value"] == {"singleSelectOptionId": "OPT_1"}


def test_add_failure_without_existing_item_raises():
    calls = []
    board = BoardIntegration(_client(_placement_handler(calls, add_fails=True)), "alice", 1)
    with pytest.raises(BoardItemNotFoundError):
        board.upsert_placement("I_1", RepoStatus.FREQUENT)
