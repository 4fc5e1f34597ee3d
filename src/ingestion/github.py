"""
Ingest closed issues and merged PRs from the GitHub search API
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

import httpx

from core.errors import ConfigError
from ingestion.base import SourceAdapter, Event, parse_timestamp
from services.logging import SUCCESS
from services.scheduler import Window

logger = logging.getLogger(__name__)

USER_AGENT = "activity-digest-bot"


def _iso_seconds(instant: datetime) -> str:
    return instant.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class GitHubAdapter(SourceAdapter):
    BASE_URL = "https://api.github.com"
    name = "github"

    def __init__(
        self,
        owner: str,
        repo: str,
        token: Optional[str],
        filters: str = "is:closed reason:completed -is:unmerged",
        per_page: int = 100,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not token:
            raise ConfigError("GitHub source requires GITHUB_TOKEN")
        self.owner = owner
        self.repo = repo
        self.token = token
        self.filters = filters
        self.per_page = per_page
        self.timeout = timeout
        self.transport = transport

    def build_query(self, window: Window) -> str:
        time_range = f"closed:{_iso_seconds(window.start)}..{_iso_seconds(window.end)}"
        return f"repo:{self.owner}/{self.repo} {self.filters} {time_range}"

    @property
    def headers(self) -> dict:
        return {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
            "Authorization": f"Bearer {self.token}",
        }

    def _to_event(self, item: dict) -> Event:
        kind = "Merged PR" if item.get("pull_request") else "Closed Issue"
        return Event(
            source="github",
            title=f"{kind} #{item['number']}: {item.get('title', '')}",
            description=item.get("body") or "No description provided",
            url=item.get("html_url"),
            timestamp=parse_timestamp(item.get("closed_at") or item["created_at"]),
        )

    async def fetch_events(self, window: Window) -> List[Event]:
        events: List[Event] = []

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers=self.headers,
                transport=self.transport,
            ) as client:
                resp = await client.get(
                    f"{self.BASE_URL}/search/issues",
                    params={"q": self.build_query(window), "per_page": self.per_page},
                )
                if not resp.is_success:
                    logger.warning(f"GitHub search returned {resp.status_code} for {self.owner}/{self.repo}")
                    return []

                for item in resp.json().get("items", []):
                    try:
                        event = self._to_event(item)
                    except (AttributeError, KeyError, TypeError, ValueError) as e:
                        logger.warning(f"Skipping malformed GitHub item: {e!r}")
                        continue
                    # The search API rounds to the second; slice to the window.
                    if not window.contains(event.timestamp):
                        continue
                    events.append(event)

        except Exception as e:
            logger.error(f"GitHub fetch failed: {e}")
            return []

        logger.log(SUCCESS, f"GitHub: found {len(events)} finalized items")
        return events
