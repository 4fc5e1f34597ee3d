"""
Topic clustering: one structured LLM call groups events into ranked topics
"""
import json
import logging
import re
from typing import List

from pydantic import ValidationError

from core.branding import normalize_brand
from core.schemas import Topic, TopicDigest
from core.scoring import boost_platform_topics, rank_topics
from ingestion.base import Event
from services.llm import ChatClient, LLMError
from services.logging import SUCCESS

logger = logging.getLogger(__name__)

BOOSTED_PLATFORM = "bluesky"


def _extract_json(content: str) -> str:
    """
    Extract JSON from LLM response, stripping markdown code blocks if present.
    """
    content = content.strip()

    # Remove markdown code blocks (```json ... ``` or ``` ... ```)
    pattern = r'^```(?:json)?\s*\n?(.*?)\n?```$'
    match = re.match(pattern, content, re.DOTALL)
    if match:
        return match.group(1).strip()

    # Try to find a JSON object in the content
    object_match = re.search(r'\{.*\}', content, re.DOTALL)
    if object_match:
        return object_match.group(0)

    return content


def build_prompt(events: List[Event], project_name: str) -> str:
    events_json = json.dumps(
        [event.model_dump(mode="json") for event in events],
        ensure_ascii=False,
    )
    return f"""You are a technical analyst for {project_name}. Group the following events into 5-6 logical "topics".

STRATEGY:
1. Community focus: treat "bluesky" events as high-signal community interests.
2. Inclusive clustering: do not sideline "bluesky" posts; weave them into relevant technical topics where possible.
3. Sources: list every event a topic is built from as {{"platform": <event source>, "url": <event url>}}.

For each topic provide:
- title: short topic title
- summary: about 50 words
- relevanceScore: number from 1 to 10
- sources: one or more {{"platform", "url"}} objects taken from the events

Refer to the project strictly as "{project_name}".
Return ONLY a JSON object with this structure: {{"topics": [{{"title": "...", "summary": "...", "relevanceScore": 7, "sources": [{{"platform": "github", "url": "https://..."}}]}}]}}

Events: {events_json}"""


def parse_topics(content: str) -> List[Topic]:
    """
    Parse and validate the model's response as a whole. A single malformed
    topic invalidates the response.

    Raises:
        ValueError: If the content is not JSON or does not match the topic schema.
    """
    clean_json = _extract_json(content)
    try:
        return TopicDigest.model_validate_json(clean_json).topics
    except ValidationError as e:
        raise ValueError(f"Invalid topic response from LLM: {e}") from e


def finalize_topics(topics: List[Topic], project_name: str) -> List[Topic]:
    """
    Deterministic pass over validated topics: brand normalization,
    community boost, then a stable descending sort.
    """
    normalized = [
        topic.model_copy(update={
            "title": normalize_brand(topic.title, project_name),
            "summary": normalize_brand(topic.summary, project_name),
        })
        for topic in topics
    ]
    boosted = boost_platform_topics(normalized, platform=BOOSTED_PLATFORM)
    return rank_topics(boosted)


async def cluster_events(
    *,
    llm: ChatClient,
    events: List[Event],
    project_name: str,
    temperature: float = 0.3,
) -> List[Topic]:
    """
    Group events into ranked topics. Returns [] when there is nothing to
    cluster or the model call / response is unusable.
    """
    if not events:
        return []

    logger.info(f"Clustering {len(events)} events into topics")

    try:
        response = await llm.complete(
            build_prompt(events, project_name),
            temperature=temperature,
            json_mode=True,
        )
    except LLMError as e:
        logger.error(f"Topic clustering request failed: {e}")
        return []

    raw_content = response["content"]
    logger.info(f"LLM response received (latency: {response['latency_ms']}ms)")
    logger.debug(f"Raw response: {raw_content[:500]}...")

    try:
        topics = parse_topics(raw_content)
    except ValueError as e:
        logger.error(f"Topic clustering response rejected: {e}")
        return []

    ranked = finalize_topics(topics, project_name)
    logger.log(SUCCESS, f"Clustered into {len(ranked)} topics")
    return ranked
