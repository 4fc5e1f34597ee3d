"""
Deterministic ranking applied on top of the model's topics
"""
import random
from typing import List, Optional

from core.schemas import MAX_SCORE, MIN_SCORE, Topic


def clamp_score(score: float) -> float:
    return max(MIN_SCORE, min(MAX_SCORE, score))


def boost_platform_topics(
    topics: List[Topic],
    *,
    platform: str = "bluesky",
    boost: float = 1.0,
) -> List[Topic]:
    """
    Raise the relevance of every topic that cites a source on `platform`.
    The boosted score never exceeds MAX_SCORE.
    """
    boosted = []
    for topic in topics:
        if topic.has_platform(platform):
            score = clamp_score(topic.relevance_score + boost)
            topic = topic.model_copy(update={"relevance_score": score})
        boosted.append(topic)
    return boosted


def rank_topics(topics: List[Topic]) -> List[Topic]:
    """
    Sort descending by relevance score. Python's sort is stable, so ties
    keep the order the model returned them in.
    """
    return sorted(topics, key=lambda t: t.relevance_score, reverse=True)


def pick_weighted_topic(topics: List[Topic], rng: Optional[random.Random] = None) -> Topic:
    """
    Roulette-wheel draw: each topic is picked with probability proportional
    to its relevance score. Falls back to the first topic when all weights
    are zero, and to the first weighted topic when float rounding lets the
    draw run off the end of the wheel.
    """
    if not topics:
        raise ValueError("Cannot pick a topic from an empty list")

    rng = rng or random.Random()
    total = sum(t.relevance_score for t in topics)
    if total <= 0:
        return topics[0]

    draw = rng.random() * total
    for topic in topics:
        if topic.relevance_score <= 0:
            continue
        if draw < topic.relevance_score:
            return topic
        draw -= topic.relevance_score

    return next(t for t in topics if t.relevance_score > 0)
