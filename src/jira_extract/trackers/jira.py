"""Search issues through the Jira REST API."""

import json
import logging
from typing import Iterator, List, Optional, Sequence

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from jira_extract.config import (
    DEFAULT_API_VERSION,
    DEFAULT_AUTH_TYPE,
    DEFAULT_INITIAL_RETRY_INTERVAL_MILLIS,
    DEFAULT_MAXIMUM_RETRY_INTERVAL_MILLIS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RETRY_LIMIT,
    DEFAULT_TIMEOUT,
    SUPPORTED_AUTH_TYPES,
    RunConfig,
)
from jira_extract.errors import ConfigurationError, TrackerError
from jira_extract.models import Issue
from jira_extract.trackers.base import BaseTracker

logger = logging.getLogger(__name__)

USER_AGENT = "jira-extract/0.1.0"


class JiraClient(BaseTracker):
    def __init__(
        self,
        session: requests.Session,
        uri: str,
        api_version: str = DEFAULT_API_VERSION,
        page_size: int = DEFAULT_PAGE_SIZE,
        expand: Sequence[str] = (),
        timeout: int = DEFAULT_TIMEOUT,
        retry_limit: int = DEFAULT_RETRY_LIMIT,
        initial_retry_interval_millis: int = DEFAULT_INITIAL_RETRY_INTERVAL_MILLIS,
        maximum_retry_interval_millis: int = DEFAULT_MAXIMUM_RETRY_INTERVAL_MILLIS,
    ):
        self._session = session
        self._api_base = f"{_strip_one_slash(uri)}/rest/api/{api_version}"
        self._page_size = page_size
        self._expand = list(expand)
        self._timeout = timeout
        self._retry_limit = retry_limit
        self._initial_wait = initial_retry_interval_millis / 1000
        self._max_wait = maximum_retry_interval_millis / 1000

    @property
    def search_url(self) -> str:
        return f"{self._api_base}/search"

    @property
    def permission_url(self) -> str:
        return f"{self._api_base}/myself"

    def check_credentials(self) -> None:
        try:
            self._request("GET", self.permission_url)
        except TrackerError as exc:
            logger.error(
                "JIRA return status (%s), reason (%s)", exc.status_code, exc.message
            )
            if exc.status_code == 401:
                raise ConfigurationError("Could not authorize with your credential.")
            raise ConfigurationError(
                "Could not authorize with your credential due to problems "
                "when contacting JIRA API."
            )

    def search_issues(self, query: str) -> Iterator[Issue]:
        """Yield every issue matching the JQL ``query``, one page at a time."""
        start_at = 0
        while True:
            page = self._request("POST", self.search_url, {
                "jql": query,
                "startAt": start_at,
                "maxResults": self._page_size,
                "fields": ["*all"],
                "expand": self._expand,
            })
            issues = page.get("issues") or []
            total = page.get("total")
            logger.info(
                "Fetched %d issue(s) starting at %d (total: %s)",
                len(issues), start_at, total if total is not None else "unknown",
            )
            for payload in issues:
                yield Issue.from_api(payload)

            start_at += len(issues)
            if not issues:
                return
            if total is not None and start_at >= total:
                return
            if total is None and len(issues) < self._page_size:
                return

    def _request(self, method: str, url: str, payload: Optional[dict] = None) -> dict:
        try:
            resp = self._retrying()(self._send, method, url, payload)
        except requests.RequestException as exc:
            raise TrackerError(-1, str(exc)) from exc
        if resp.status_code != 200:
            raise TrackerError(resp.status_code, _extract_error_messages(resp.text))
        try:
            return resp.json()
        except ValueError as exc:
            raise TrackerError(resp.status_code, "Response body is not valid JSON") from exc

    def _send(self, method: str, url: str, payload: Optional[dict]) -> requests.Response:
        return self._session.request(method, url, json=payload, timeout=self._timeout)

    def _retrying(self) -> Retrying:
        # Transport failures and 5xx responses are retried; 4xx statuses are final.
        # Once attempts run out the last 5xx response is returned as is.
        return Retrying(
            stop=stop_after_attempt(self._retry_limit + 1),
            wait=wait_exponential(
                multiplier=self._initial_wait, min=self._initial_wait, max=self._max_wait
            ),
            retry=(
                retry_if_exception_type((requests.ConnectionError, requests.Timeout))
                | retry_if_result(_is_server_error)
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            retry_error_callback=lambda state: state.outcome.result(),
        )


def setup(
    username: str,
    password: str,
    uri: str,
    api_version: str = DEFAULT_API_VERSION,
    auth_type: str = DEFAULT_AUTH_TYPE,
    **options,
) -> JiraClient:
    """Create a JiraClient with an authenticated session."""
    if auth_type not in SUPPORTED_AUTH_TYPES:
        raise ConfigurationError(f"Unsupported auth_type: '{auth_type}'")
    session = requests.Session()
    session.auth = (username, password)
    session.headers.update({
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
        "Content-Type": "application/json",
    })
    return JiraClient(session, uri, api_version=api_version, **options)


def setup_from_config(config: RunConfig) -> JiraClient:
    return setup(
        config.username,
        config.password,
        config.uri,
        api_version=config.api_version,
        auth_type=config.auth_type,
        page_size=config.page_size,
        expand=config.expand,
        timeout=config.timeout,
        retry_limit=config.retry_limit,
        initial_retry_interval_millis=config.initial_retry_interval_millis,
        maximum_retry_interval_millis=config.maximum_retry_interval_millis,
    )


def _is_server_error(resp: requests.Response) -> bool:
    return resp.status_code >= 500


def _strip_one_slash(uri: str) -> str:
    return uri[:-1] if uri.endswith("/") else uri


def _extract_error_messages(body: str) -> str:
    messages: List[str] = []
    try:
        data = json.loads(body)
        messages.extend(str(m) for m in data.get("errorMessages") or [])
        messages.extend(f"{k}: {v}" for k, v in (data.get("errors") or {}).items())
    except (ValueError, AttributeError, TypeError):
        messages.append(body)
    return " , ".join(messages) if messages else body
