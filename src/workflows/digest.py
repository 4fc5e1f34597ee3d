"""
Digest workflow: window → fetch → liveness → cluster → headline → post
"""
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import httpx

from core.schemas import Post, Topic
from core.scoring import pick_weighted_topic
from delivery.base import DeliveryChannel
from ingestion.base import Event, SourceAdapter
from processing.assembler import assemble_post
from processing.clustering import cluster_events
from processing.headline import generate_headline
from processing.liveness import filter_reachable
from services.config import Config
from services.llm import ChatClient
from services.post_archive import PostArchive
from services.scheduler import Window, select_window
from workflows.base import fetch_all

logger = logging.getLogger(__name__)


@dataclass
class DigestResult:
    window: Window
    events: List[Event]
    topics: List[Topic]
    post: Optional[Post] = None
    path: Optional[Path] = None


class DigestPipeline:
    """
    Orchestrates one generation cycle. Recoverable failures (a source
    going down, an unusable model response) shrink the result; an invalid
    post or a failed write raises.
    """

    name = "digest"

    def __init__(
        self,
        config: Config,
        llm: ChatClient,
        sources: List[SourceAdapter],
        delivery: Optional[DeliveryChannel],
        archive: Optional[PostArchive] = None,
        rng: Optional[random.Random] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.llm = llm
        self.sources = sources
        self.delivery = delivery
        self.archive = archive
        self.rng = rng
        self.transport = transport

    @property
    def project_name(self) -> str:
        return self.config.project.name

    async def _collect(self, window: Window) -> List[Event]:
        events = await fetch_all(self.sources, window)
        logger.info(f"[{self.name}] Fetched {len(events)} events from {len(self.sources)} sources")

        liveness = self.config.liveness
        if liveness.enabled and events:
            events = await filter_reachable(
                events,
                sources=liveness.sources,
                timeout=liveness.timeout_seconds,
                transport=self.transport,
            )
            logger.info(f"[{self.name}] After liveness filter: {len(events)} events")
        return events

    async def run(self, now: datetime) -> DigestResult:
        window = select_window(now, self.config.schedule)
        logger.info(
            f"[{self.name}] Window {window.start.isoformat()} → {window.end.isoformat()} ({window.post_type})"
        )

        events = await self._collect(window)
        topics = await cluster_events(
            llm=self.llm,
            events=events,
            project_name=self.project_name,
            temperature=self.config.llm.clustering_temperature,
        )
        result = DigestResult(window=window, events=events, topics=topics)

        if not topics:
            logger.warning(f"[{self.name}] No topics found. Skipping generation.")
            return result

        hero = pick_weighted_topic(topics, self.rng)
        logger.info(f"[{self.name}] Hero topic: {hero.title} (score: {hero.relevance_score})")

        recent_titles = []
        if self.archive is not None:
            recent_titles = self.archive.recent_titles(self.config.output.recent_titles)

        title = await generate_headline(
            llm=self.llm,
            topic=hero,
            project_name=self.project_name,
            recent_titles=recent_titles,
            temperature=self.config.llm.title_temperature,
            max_tokens=self.config.llm.title_max_tokens,
        )
        logger.info(f"[{self.name}] Title: {title}")

        result.post = assemble_post(
            title=title,
            window=window,
            topics=topics,
            allowed_types=self.config.schedule.post_types,
        )

        if self.delivery is not None:
            result.path = await self.delivery.deliver(result.post)
        return result
