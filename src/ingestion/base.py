"""
Base classes for Ingestion
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, field_serializer, field_validator

from core.schemas import check_http_url
from services.scheduler import Window

EventSource = Literal["github", "bluesky"]


class Event(BaseModel):
    """
    One unit of observed activity, normalized across sources.
    """
    source: EventSource
    title: str
    description: str
    url: Optional[str] = None
    timestamp: datetime

    @field_validator("url")
    @classmethod
    def _well_formed_url(cls, value: Optional[str]) -> Optional[str]:
        return check_http_url(value) if value is not None else None

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        return value.isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse the ISO-8601 timestamps both APIs return (trailing Z included)."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class SourceAdapter(ABC):
    """
    Base interface for all ingestion sources.
    """

    name: str

    @abstractmethod
    async def fetch_events(self, window: Window) -> List[Event]:
        """
        Fetch events that happened within the window.
        Must NEVER raise uncaught exceptions.
        """
        raise NotImplementedError
