"""
Shared pieces for workflows
"""
import asyncio
import logging
from typing import List

from ingestion.base import Event, SourceAdapter
from services.scheduler import Window

logger = logging.getLogger(__name__)


async def fetch_all(sources: List[SourceAdapter], window: Window) -> List[Event]:
    """
    Run every source concurrently and concatenate their events in source
    order. A failing source contributes nothing; it never aborts siblings.
    """
    results = await asyncio.gather(
        *(source.fetch_events(window) for source in sources),
        return_exceptions=True,
    )

    events: List[Event] = []
    for source, result in zip(sources, results):
        if isinstance(result, BaseException):
            logger.error(f"Source {source.__class__.__name__} failed: {result}")
            continue
        events.extend(result)
    return events
