"""
Ingest posts and reposts from a Bluesky author feed
"""
import logging
from typing import List, Optional, Tuple

import httpx

from ingestion.base import SourceAdapter, Event, parse_timestamp
from services.logging import SUCCESS
from services.scheduler import Window

logger = logging.getLogger(__name__)

TITLE_LENGTH = 80


class BlueskyAdapter(SourceAdapter):
    BASE_URL = "https://public.api.bsky.app/xrpc"
    name = "bluesky"

    def __init__(
        self,
        handle: str,
        page_limit: int = 100,
        max_pages: int = 20,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.handle = handle
        self.page_limit = page_limit
        self.max_pages = max_pages
        self.timeout = timeout
        self.transport = transport

    async def _resolve_did(self, client: httpx.AsyncClient) -> Optional[str]:
        resp = await client.get(
            f"{self.BASE_URL}/com.atproto.identity.resolveHandle",
            params={"handle": self.handle},
        )
        if not resp.is_success:
            logger.warning(f"Bluesky handle {self.handle} could not be resolved ({resp.status_code})")
            return None
        return resp.json().get("did")

    def _to_event(self, item: dict) -> Event:
        post = item["post"]
        reason = item.get("reason")
        author = post["author"]["handle"]
        text = post.get("record", {}).get("text", "")
        post_id = post["uri"].rsplit("/", 1)[-1]

        prefix = f"[Repost from @{author}] " if reason else ""
        return Event(
            source="bluesky",
            title=f"{prefix}{text[:TITLE_LENGTH]}",
            description=text,
            url=f"https://bsky.app/profile/{author}/post/{post_id}",
            timestamp=self._action_time(item),
        )

    @staticmethod
    def _action_time(item: dict):
        # A repost happens when it is reposted, not when the original was written
        reason = item.get("reason") or {}
        return parse_timestamp(reason.get("indexedAt") or item["post"]["indexedAt"])

    def _slice_page(self, feed: List[dict], window: Window) -> Tuple[List[Event], bool]:
        """
        Returns the page's events inside the window, and whether the page
        reached back past the window start.
        """
        events: List[Event] = []
        reached_start = False

        for item in feed:
            try:
                when = self._action_time(item)
                if when < window.start:
                    reached_start = True
                    continue
                if when > window.end:
                    continue
                events.append(self._to_event(item))
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed Bluesky feed item: {e!r}")

        return events, reached_start

    async def fetch_events(self, window: Window) -> List[Event]:
        events: List[Event] = []

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                did = await self._resolve_did(client)
                if not did:
                    return []

                cursor: Optional[str] = None
                for _ in range(self.max_pages):
                    params = {
                        "actor": did,
                        "limit": self.page_limit,
                        "filter": "posts_with_replies",
                    }
                    if cursor:
                        params["cursor"] = cursor

                    resp = await client.get(f"{self.BASE_URL}/app.bsky.feed.getAuthorFeed", params=params)
                    if not resp.is_success:
                        logger.warning(f"Bluesky feed page returned {resp.status_code}")
                        break

                    data = resp.json()
                    feed = data.get("feed") or []
                    if not feed:
                        break

                    page_events, reached_start = self._slice_page(feed, window)
                    events.extend(page_events)

                    cursor = data.get("cursor")
                    if reached_start or not cursor:
                        break
                else:
                    logger.warning(f"Bluesky pagination stopped after {self.max_pages} pages")

        except Exception as e:
            logger.error(f"Bluesky fetch failed: {e}")
            return []

        logger.log(SUCCESS, f"Bluesky: collected {len(events)} items")
        return events
