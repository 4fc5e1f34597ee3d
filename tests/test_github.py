import asyncio

import httpx
import pytest

from conftest import json_transport, utc
from core.errors import ConfigError
from ingestion.github import GitHubAdapter

SEARCH_RESPONSE = {
    "total_count": 4,
    "items": [
        {
            "number": 101,
            "title": "Add package diff view",
            "body": "Implements the diff view.",
            "html_url": "https://github.com/npmx-dev/npmx.dev/pull/101",
            "pull_request": {"url": "https://api.github.com/repos/npmx-dev/npmx.dev/pulls/101"},
            "closed_at": "2026-02-03T09:30:00Z",
            "created_at": "2026-02-01T09:00:00Z",
        },
        {
            "number": 99,
            "title": "Search is slow",
            "body": None,
            "html_url": "https://github.com/npmx-dev/npmx.dev/issues/99",
            "closed_at": "2026-02-03T12:00:00Z",
            "created_at": "2026-01-30T09:00:00Z",
        },
        {
            "number": 98,
            "title": "No close date",
            "body": "",
            "html_url": "https://github.com/npmx-dev/npmx.dev/issues/98",
            "closed_at": None,
            "created_at": "2026-02-03T07:00:00Z",
        },
        {
            "number": 97,
            "title": "Closed after the window",
            "body": "",
            "html_url": "https://github.com/npmx-dev/npmx.dev/issues/97",
            "closed_at": "2026-02-03T14:00:01Z",
            "created_at": "2026-02-02T07:00:00Z",
        },
    ],
}


def _adapter(transport: httpx.MockTransport) -> GitHubAdapter:
    return GitHubAdapter(owner="npmx-dev", repo="npmx.dev", token="secret", transport=transport)


def test_maps_items_to_events(window):
    events = asyncio.run(_adapter(json_transport(lambda r: (200, SEARCH_RESPONSE))).fetch_events(window))

    assert [e.title for e in events] == [
        "Merged PR #101: Add package diff view",
        "Closed Issue #99: Search is slow",
        "Closed Issue #98: No close date",
    ]
    assert all(e.source == "github" for e in events)
    assert events[0].timestamp == utc(2026, 2, 3, 9, 30)
    assert events[1].description == "No description provided"
    # Falls back to the creation time when the close time is missing
    assert events[2].timestamp == utc(2026, 2, 3, 7)


def test_sends_search_query_and_headers(window):
    seen = []

    def handler(request: httpx.Request):
        seen.append(request)
        return 200, {"items": []}

    asyncio.run(_adapter(json_transport(handler)).fetch_events(window))

    request = seen[0]
    assert request.url.path == "/search/issues"
    assert request.url.params["q"] == (
        "repo:npmx-dev/npmx.dev is:closed reason:completed -is:unmerged "
        "closed:2026-02-03T06:00:00Z..2026-02-03T14:00:00Z"
    )
    assert request.headers["Accept"] == "application/vnd.github.v3+json"
    assert request.headers["Authorization"] == "Bearer secret"


def test_404_yields_empty_list(window):
    events = asyncio.run(_adapter(json_transport(lambda r: (404, {"message": "Not Found"}))).fetch_events(window))
    assert events == []


def test_network_error_yields_empty_list(window):
    def handler(request: httpx.Request):
        raise httpx.ConnectError("connection refused", request=request)

    events = asyncio.run(_adapter(httpx.MockTransport(handler)).fetch_events(window))
    assert events == []


def test_malformed_item_is_skipped(window):
    items = [{"title": "no number"}, SEARCH_RESPONSE["items"][0], {"number": 5, "closed_at": "not a date"}]
    events = asyncio.run(_adapter(json_transport(lambda r: (200, {"items": items}))).fetch_events(window))
    assert [e.title for e in events] == ["Merged PR #101: Add package diff view"]


def test_missing_token_fails_fast():
    with pytest.raises(ConfigError):
        GitHubAdapter(owner="o", repo="r", token="")
