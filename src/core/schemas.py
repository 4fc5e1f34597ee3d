"""
Pydantic schemas for topics and persisted posts
"""
from datetime import datetime, timezone
from typing import List

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError,
    field_serializer,
    field_validator,
)

MIN_SCORE = 0.0
MAX_SCORE = 10.0

_HTTP_URL = TypeAdapter(HttpUrl)


def check_http_url(value: str) -> str:
    """
    Validate `value` as an absolute http(s) URL but return the original
    string, so persisted JSON stays byte-stable.
    """
    try:
        _HTTP_URL.validate_python(value)
    except ValidationError as e:
        raise ValueError(f"malformed url: {value!r}") from e
    return value


class Source(BaseModel):
    """
    A reference to one event the model used for a topic.
    """
    platform: str
    url: str

    @field_validator("url")
    @classmethod
    def _well_formed_url(cls, value: str) -> str:
        return check_http_url(value)


class Topic(BaseModel):
    """
    A cluster of related events produced by the clustering step.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: str
    summary: str
    relevance_score: float = Field(..., ge=MIN_SCORE, le=MAX_SCORE, alias="relevanceScore")
    sources: List[Source] = Field(..., min_length=1)

    def has_platform(self, platform: str) -> bool:
        return any(src.platform.lower() == platform.lower() for src in self.sources)


class TopicDigest(BaseModel):
    """
    Envelope the language model must return: {"topics": [...]}
    """
    topics: List[Topic]


class Post(BaseModel):
    """
    Persisted artifact for one generation cycle.
    """
    title: str = Field(..., min_length=1)
    date: datetime
    type: str = Field(..., min_length=1)
    topics: List[Topic]

    @field_validator("date")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @field_serializer("date")
    def _serialize_date(self, value: datetime) -> str:
        return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"

    @property
    def slug(self) -> str:
        return f"{self.date.date().isoformat()}-{self.type}"

    def to_json(self) -> str:
        """Deterministic JSON rendering used for the persisted file."""
        return self.model_dump_json(by_alias=True, indent=2) + "\n"
