"""GitHub Projects (v2) board lookup and status placement for mirrored issues."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..activity import parse_status_label
from ..config import DEFAULT_STATUS_FIELD
from ..models import BoardInfo, RepoStatus
from ..retrieval.http_client import (
    REMOTE_ERRORS,
    FailureKind,
    GitHubClient,
    GraphQLError,
    classify_failure,
)

logger = logging.getLogger(__name__)

BOARD_FIELDS_QUERY = """
query BoardFields($user: String!, $number: Int!) {
  user(login: $user) {
    projectV2(number: $number) {
      id
      fields(first: 20) {
        nodes {
          ... on ProjectV2SingleSelectField {
            id
            name
            options { id name }
          }
        }
      }
    }
  }
}
"""

ADD_ITEM_MUTATION = """
mutation AddItem($projectId: ID!, $contentId: ID!) {
  addProjectV2ItemById(input: {projectId: $projectId, contentId: $contentId}) {
    item { id }
  }
}
"""

BOARD_ITEMS_QUERY = """
query BoardItems($projectId: ID!) {
  node(id: $projectId) {
    ... on ProjectV2 {
      items(first: 100) {
        nodes {
          id
          content {
            ... on Issue { id }
          }
        }
      }
    }
  }
}
"""

UPDATE_STATUS_MUTATION = """
mutation UpdateStatus($projectId: ID!, $itemId: ID!, $fieldId: ID!, $value: ProjectV2FieldValue!) {
  updateProjectV2ItemFieldValue(input: {
    projectId: $projectId
    itemId: $itemId
    fieldId: $fieldId
    value: $value
  }) {
    projectV2Item { id }
  }
}
"""


class BoardConfigurationError(RuntimeError):
    """The configured board or its status field cannot be resolved; fatal for the run."""


class BoardItemNotFoundError(RuntimeError):
    """Neither adding the issue nor listing the board produced a board item."""


def _is_missing_board(exc: BaseException) -> bool:
    """An unresolvable user or project number both mean the board cannot be located."""
    return isinstance(exc, GraphQLError) and classify_failure(exc) is FailureKind.NOT_FOUND


class BoardIntegration:
    """Resolves a user-owned board once per run and places issues on it."""

    def __init__(self,
                 client: GitHubClient,
                 owner: str,
                 board_number: int,
                 status_field_name: str = DEFAULT_STATUS_FIELD) -> None:
        self.client = client
        self.owner = owner
        self.board_number = board_number
        self.status_field_name = status_field_name or DEFAULT_STATUS_FIELD
        self._info: Optional[BoardInfo] = None

    def fetch_board_info(self) -> BoardInfo:
        """Return the memoized BoardInfo, querying the board on first use.

        Raises BoardConfigurationError when the board or the named status
        field does not exist; other failures propagate as remote errors.
        """
        if self._info is not None:
            return self._info

        variables = {"user": self.owner, "number": self.board_number}

        def query() -> Optional[Dict[str, Any]]:
            try:
                return self.client.graphql(BOARD_FIELDS_QUERY, variables)
            except GraphQLError as exc:
                # A missing board is a configuration problem, not worth retrying.
                if _is_missing_board(exc):
                    return None
                raise

        data = self.client.retry(query)
        project = ((data or {}).get("user") or {}).get("projectV2")
        if not project:
            raise BoardConfigurationError(
                f"Project number {self.board_number} could not be found for user {self.owner}; "
                "check the project configuration."
            )

        fields = ((project.get("fields") or {}).get("nodes")) or []
        status_field = next(
            (f for f in fields if f and f.get("name") == self.status_field_name),
            None,
        )
        if not status_field:
            raise BoardConfigurationError(
                f"Status field '{self.status_field_name}' was not found on project {self.board_number}."
            )

        options: Dict[RepoStatus, str] = {}
        for option in status_field.get("options") or []:
            status = parse_status_label(option.get("name"))
            if status is not RepoStatus.UNKNOWN:
                options[status] = option["id"]

        self._info = BoardInfo(
            project_id=project["id"],
            status_field_id=status_field["id"],
            status_options=options,
        )
        logger.info(
            "resolved project %s with %d status options", self.board_number, len(options)
        )
        return self._info

    def find_item_id(self, project_id: str, content_id: str) -> str:
        """Locate an existing board item by its issue node id (first 100 items only)."""
        data = self.client.retry(lambda: self.client.graphql(BOARD_ITEMS_QUERY, {"projectId": project_id}))
        nodes = (((data.get("node") or {}).get("items") or {}).get("nodes")) or []
        for node in nodes:
            if ((node or {}).get("content") or {}).get("id") == content_id:
                return node["id"]
        raise BoardItemNotFoundError(f"no board item found for content {content_id}")

    def add_item(self, board: BoardInfo, content_id: str) -> str:
        """Add the issue to the board, falling back to a lookup when the add fails.

        Any add failure is treated as "already on the board"; a genuine fault
        surfaces as BoardItemNotFoundError from the lookup.
        """
        try:
            data = self.client.retry(
                lambda: self.client.graphql(
                    ADD_ITEM_MUTATION, {"projectId": board.project_id, "contentId": content_id}
                )
            )
            return data["addProjectV2ItemById"]["item"]["id"]
        except (*REMOTE_ERRORS, KeyError, TypeError) as exc:
            logger.info("  add to board failed (%s); looking up existing item", exc)
            return self.find_item_id(board.project_id, content_id)

    def upsert_placement(self, content_id: str, status: RepoStatus, board: Optional[BoardInfo] = None) -> bool:
        """Ensure the issue is on the board with the option for ``status``.

        Returns False when the board has no option for the bucket.
        """
        board = board or self.fetch_board_info()
        item_id = self.add_item(board, content_id)

        option_id = board.status_options.get(status)
        if not option_id:
            logger.warning("[warn] no board option for status '%s'; leaving item unchanged", status.value)
            return False

        self.client.retry(
            lambda: self.client.graphql(
                UPDATE_STATUS_MUTATION,
                {
                    "projectId": board.project_id,
                    "itemId": item_id,
                    "fieldId": board.status_field_id,
                    "value": {"singleSelectOptionId": option_id},
                },
            )
        )
        return True


__all__ = [
    "BoardConfigurationError",
    "BoardItemNotFoundError",
    "BoardIntegration",
]
