"""HTTP and GraphQL helpers with rate-limit aware retry/backoff logic."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

import requests

from ..config import (
    BASE_URL,
    GRAPHQL_URL,
    INITIAL_BACKOFF_SEC,
    MAX_RETRIES,
    MAX_SECONDARY_BACKOFF_SEC,
    PRIMARY_RESET_MARGIN_SEC,
    REQUEST_TIMEOUT,
    RETRY_DELAY_SEC,
    USER_AGENT,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

SECONDARY_RATE_LIMIT_MARKER = "secondary rate limit"


class GitHubApiError(RuntimeError):
    """A non-successful response from the GitHub REST or GraphQL endpoint."""

    def __init__(self,
                 status_code: int,
                 message: str,
                 headers: Optional[Mapping[str, str]] = None,
                 url: Optional[str] = None) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message or ""
        self.headers = {str(k).lower(): str(v) for k, v in (headers or {}).items()}
        self.url = url


class GraphQLError(GitHubApiError):
    """A GraphQL response that carried an ``errors`` array."""

    def __init__(self, errors: List[Dict[str, Any]], url: Optional[str] = None) -> None:
        messages = ", ".join(str(err.get("message")) for err in errors if isinstance(err, dict))
        super().__init__(200, f"GraphQL error: {messages or errors}", url=url)
        self.errors = errors

    def is_not_found(self) -> bool:
        return any(isinstance(err, dict) and err.get("type") == "NOT_FOUND" for err in self.errors)


# Failures raised by a remote call once the retry budget is spent.
REMOTE_ERRORS = (GitHubApiError, requests.RequestException)


class FailureKind(Enum):
    SECONDARY = "secondary"
    PRIMARY_EXHAUSTED = "primary_exhausted"
    NOT_FOUND = "not_found"
    OTHER = "other"


def classify_failure(exc: BaseException) -> FailureKind:
    """Tag an exception once so callers switch on a variant instead of raw fields."""
    if isinstance(exc, GraphQLError):
        return FailureKind.NOT_FOUND if exc.is_not_found() else FailureKind.OTHER
    if not isinstance(exc, GitHubApiError):
        return FailureKind.OTHER
    if exc.status_code in (403, 429) and SECONDARY_RATE_LIMIT_MARKER in exc.message.lower():
        return FailureKind.SECONDARY
    if exc.status_code == 403 and exc.headers.get("x-ratelimit-remaining") == "0":
        return FailureKind.PRIMARY_EXHAUSTED
    if exc.status_code == 404:
        return FailureKind.NOT_FOUND
    return FailureKind.OTHER


def secondary_backoff_delay(attempt: int, initial_delay: float = INITIAL_BACKOFF_SEC) -> float:
    """Exponential delay for a secondary rate limit, capped at one hour."""
    return min(initial_delay * (2 ** attempt), MAX_SECONDARY_BACKOFF_SEC)


def primary_reset_delay(exc: GitHubApiError, now: Optional[float] = None) -> Optional[float]:
    """Seconds until the primary quota resets plus a safety margin, or None without a reset header."""
    reset = exc.headers.get("x-ratelimit-reset")
    if not reset or not str(reset).isdigit():
        return None
    now = time.time() if now is None else now
    return int(reset) - now + PRIMARY_RESET_MARGIN_SEC


def retry_with_backoff(operation: Callable[[], T],
                       max_retries: int = MAX_RETRIES,
                       initial_delay: float = INITIAL_BACKOFF_SEC,
                       *,
                       sleep: Optional[Callable[[float], None]] = None,
                       clock: Optional[Callable[[], float]] = None) -> T:
    """Run ``operation`` and retry failures per the rate-limit policy.

    Secondary limits back off exponentially, exhausted primary quotas wait for
    the reset header, any other exception waits a fixed delay. After
    ``max_retries`` retries the last error propagates unchanged. Not-found
    errors are retried like any other failure; operations that treat absence
    as normal must handle it themselves.
    """
    sleep = sleep or time.sleep
    clock = clock or time.time
    max_retries = max(max_retries, 0)

    for attempt in range(max_retries + 1):
        try:
            return operation()
        except Exception as exc:
            kind = classify_failure(exc)
            has_budget = attempt < max_retries

            if kind is FailureKind.SECONDARY and has_budget:
                delay = secondary_backoff_delay(attempt, initial_delay)
                logger.warning(
                    "[rate-limit] secondary rate limit hit; waiting %.1f min (%ds) before retry %d/%d (%s)",
                    delay / 60, delay, attempt + 1, max_retries, getattr(exc, "url", None) or "N/A",
                )
                sleep(delay)
                continue

            if kind is FailureKind.PRIMARY_EXHAUSTED and has_budget:
                wait = primary_reset_delay(exc, clock())  # type: ignore[arg-type]
                if wait is not None and wait > 0:
                    logger.warning("[rate-limit] primary quota exhausted; waiting %.1f min for reset", wait / 60)
                    sleep(wait)
                    continue

            if has_budget:
                logger.warning(
                    "[retry %d/%d] %s -> sleep %ds", attempt + 1, max_retries, exc, RETRY_DELAY_SEC
                )
                sleep(RETRY_DELAY_SEC)
                continue

            logger.error("[error] giving up after %d attempts: %s", attempt + 1, exc)
            raise


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return (resp.text or "")[:300]
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or "")
    return ""


class GitHubClient:
    """Thin wrapper around the GitHub REST and GraphQL endpoints.

    Every request raises :class:`GitHubApiError` on failure; :meth:`retry`
    wraps a zero-argument call in the back-off policy.
    """

    def __init__(self,
                 token: Optional[str],
                 base_url: str = BASE_URL,
                 graphql_url: str = GRAPHQL_URL,
                 timeout: int = REQUEST_TIMEOUT,
                 max_retries: int = MAX_RETRIES,
                 initial_delay: float = INITIAL_BACKOFF_SEC,
                 sleep: Optional[Callable[[float], None]] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.graphql_url = graphql_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.sleep = sleep or time.sleep
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "User-Agent": USER_AGENT,
            }
        )
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    def _url(self, path: str) -> str:
        if path.startswith("http"):
            return path
        path = path if path.startswith("/") else f"/{path}"
        return f"{self.base_url}{path}"

    def request(self,
                method: str,
                path: str,
                *,
                params: Optional[Dict[str, Any]] = None,
                json: Optional[Dict[str, Any]] = None) -> Any:
        """Send one REST request and return the decoded JSON body."""
        url = self._url(path)
        resp = self.session.request(method, url, params=params, json=json, timeout=self.timeout)
        if not 200 <= resp.status_code < 300:
            raise GitHubApiError(resp.status_code, _error_message(resp), resp.headers, url)
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, payload: Dict[str, Any]) -> Any:
        return self.request("POST", path, json=payload)

    def patch(self, path: str, payload: Dict[str, Any]) -> Any:
        return self.request("PATCH", path, json=payload)

    def get_optional(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET that maps a 404 to None instead of raising."""
        try:
            return self.get(path, params)
        except GitHubApiError as exc:
            if classify_failure(exc) is FailureKind.NOT_FOUND:
                return None
            raise

    def graphql(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """Execute a GraphQL document and return its ``data`` member."""
        resp = self.session.post(
            self.graphql_url,
            json={"query": query, "variables": variables},
            timeout=self.timeout,
        )
        if resp.status_code != 200:
            raise GitHubApiError(resp.status_code, _error_message(resp), resp.headers, self.graphql_url)
        data = resp.json() or {}
        if data.get("errors"):
            raise GraphQLError(data["errors"], self.graphql_url)
        return data.get("data") or {}

    def retry(self, operation: Callable[[], T]) -> T:
        return retry_with_backoff(
            operation,
            self.max_retries,
            self.initial_delay,
            sleep=self.sleep,
        )


__all__ = [
    "GitHubApiError",
    "GraphQLError",
    "REMOTE_ERRORS",
    "FailureKind",
    "classify_failure",
    "secondary_backoff_delay",
    "primary_reset_delay",
    "retry_with_backoff",
    "GitHubClient",
]
