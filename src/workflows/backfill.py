"""
Backfill workflow: dump the raw merged event stream for an explicit window
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from ingestion.base import Event, SourceAdapter
from services.config import Config
from services.scheduler import Window, window_ending_at
from workflows.base import fetch_all

logger = logging.getLogger(__name__)

SOURCE_PRIORITY = {
    "bluesky": 1,
    "github": 2,
}


def _iso(instant: datetime) -> str:
    return instant.isoformat().replace("+00:00", "Z")


def order_events(events: List[Event]) -> List[Event]:
    """Chronological, with community posts ahead of GitHub on equal timestamps."""
    return sorted(events, key=lambda e: (e.timestamp, SOURCE_PRIORITY.get(e.source, 99)))


def build_payload(window: Window, hours: float, events: List[Event]) -> Dict[str, Any]:
    return {
        "metadata": {
            "generatedAt": _iso(window.end),
            "window": {
                "start": _iso(window.start),
                "end": _iso(window.end),
                "hours": hours,
            },
        },
        "events": [event.model_dump(mode="json") for event in events],
    }


async def run_backfill(
    *,
    config: Config,
    sources: List[SourceAdapter],
    end: datetime,
    hours: Optional[float] = None,
) -> Optional[Dict[str, Any]]:
    """
    Fetch every source for the window ending at `end`. Returns None when
    the window holds no events.
    """
    hours = hours if hours is not None else config.schedule.lookback_hours
    window = window_ending_at(end, hours, config.schedule)
    logger.info(f"Fetching window: {_iso(window.start)} to {_iso(window.end)}")

    events = order_events(await fetch_all(sources, window))
    if not events:
        logger.warning("No events found.")
        return None

    return build_payload(window, hours, events)


def render_payload(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
