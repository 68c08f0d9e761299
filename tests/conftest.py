"""Shared fixtures for jira-extract tests."""

import pytest
import requests

from jira_extract.output import RowSink
from jira_extract.trackers.base import BaseTracker
from jira_extract.trackers.jira import JiraClient

BASE_URI = "https://example.atlassian.net"


class FakeTracker(BaseTracker):
    """Yields the given issues; an Exception instance in the list is raised instead."""

    def __init__(self, items):
        self.items = list(items)
        self.queries = []
        self.credentials_checked = False
        self.pulled = 0

    def search_issues(self, query):
        self.queries.append(query)
        for item in self.items:
            self.pulled += 1
            if isinstance(item, Exception):
                raise item
            yield item

    def check_credentials(self):
        self.credentials_checked = True


class RecordingSink(RowSink):
    """Remembers every call in order, whatever the row width."""

    def __init__(self, columns=()):
        super().__init__(columns)
        self.calls = []

    def add(self, values):
        if self.finished:
            raise AssertionError("add called after finish")
        self.calls.append(("add", list(values)))

    def _add(self, values):
        pass

    def _finish(self):
        self.calls.append(("finish",))

    @property
    def rows(self):
        return [c[1] for c in self.calls if c[0] == "add"]

    @property
    def finish_count(self):
        return sum(1 for c in self.calls if c[0] == "finish")


@pytest.fixture
def fake_tracker():
    return FakeTracker


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def session():
    return requests.Session()


@pytest.fixture
def jira_client(session):
    """Client with near-zero retry waits."""
    return JiraClient(
        session,
        BASE_URI,
        page_size=2,
        retry_limit=2,
        initial_retry_interval_millis=1,
        maximum_retry_interval_millis=1,
    )


@pytest.fixture
def config_mapping():
    return {
        "username": "alice@example.com",
        "password": "api-token",
        "uri": BASE_URI,
        "jql": "project = DEMO ORDER BY key",
        "attributes": ["key", "status", "assignee", "created"],
    }


# --- Mock API response payloads ---

def issue_payload(key, **fields):
    return {
        "expand": "renderedFields,names",
        "id": key.split("-")[1] + "000",
        "self": f"{BASE_URI}/rest/api/latest/issue/{key}",
        "key": key,
        "fields": fields,
    }


@pytest.fixture
def full_issue_payload():
    return issue_payload(
        "DEMO-1",
        summary="Login page returns 500",
        status={"name": "In Progress", "id": "3"},
        assignee={"displayName": "Alice Example", "accountId": "abc123"},
        project={"key": "DEMO", "name": "Demo Project"},
        labels=["backend", "urgent"],
        components=[{"name": "auth"}],
        created="2019-01-01T00:00:00.000+0000",
        duedate="2019-02-15",
        timespent=3600,
        votes={"votes": 2, "hasVoted": False},
        progress={"progress": 3600, "total": 7200, "percent": 50},
        resolution=None,
    )


@pytest.fixture
def search_page_1():
    return {
        "startAt": 0,
        "maxResults": 2,
        "total": 3,
        "issues": [
            issue_payload("DEMO-1", status={"name": "Open"}),
            issue_payload("DEMO-2", status={"name": "Done"}),
        ],
    }


@pytest.fixture
def search_page_2():
    return {
        "startAt": 2,
        "maxResults": 2,
        "total": 3,
        "issues": [issue_payload("DEMO-3", status={"name": "Open"})],
    }


@pytest.fixture
def empty_search_page():
    return {"startAt": 0, "maxResults": 2, "total": 0, "issues": []}


@pytest.fixture
def myself_payload():
    return {"accountId": "abc123", "emailAddress": "alice@example.com", "active": True}
