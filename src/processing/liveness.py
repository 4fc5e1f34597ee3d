"""
Drop events whose outbound link does not answer a HEAD probe
"""
import asyncio
import logging
from typing import Iterable, List, Optional

import httpx

from ingestion.base import Event

logger = logging.getLogger(__name__)


async def is_url_reachable(client: httpx.AsyncClient, url: str, timeout: float = 3.0) -> bool:
    try:
        # Waiting for a pooled connection does not count against the probe
        resp = await client.head(url, timeout=httpx.Timeout(timeout, pool=None), follow_redirects=True)
    except httpx.HTTPError as e:
        logger.debug(f"Probe failed for {url}: {e}")
        return False
    return resp.is_success


async def filter_reachable(
    events: List[Event],
    *,
    sources: Iterable[str] = ("bluesky",),
    timeout: float = 3.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[Event]:
    """
    Probe the links of events from `sources` concurrently and keep only those
    that answer with a 2xx status. Events from other sources pass through.
    Order is preserved.
    """
    probed = {s.lower() for s in sources}
    candidates = [e for e in events if e.source in probed]
    if not candidates:
        return list(events)

    limits = httpx.Limits(max_connections=len(candidates), max_keepalive_connections=20)
    async with httpx.AsyncClient(timeout=timeout, limits=limits, transport=transport) as client:

        async def probe(event: Event) -> bool:
            if not event.url:
                return False
            return await is_url_reachable(client, event.url, timeout=timeout)

        results = await asyncio.gather(*(probe(e) for e in candidates))

    alive_ids = {id(e) for e, alive in zip(candidates, results) if alive}
    kept = [e for e in events if e.source not in probed or id(e) in alive_ids]

    dropped = len(events) - len(kept)
    if dropped:
        logger.info(f"Liveness filter dropped {dropped} of {len(candidates)} probed events")
    return kept
