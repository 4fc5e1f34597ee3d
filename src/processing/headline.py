"""
Headline generation for the hero topic
"""
import logging
from typing import Optional, Sequence

from core.branding import normalize_brand
from core.schemas import Topic
from services.llm import ChatClient, LLMError

logger = logging.getLogger(__name__)

_QUOTES = "\"'`“”‘’"


def build_prompt(topic: Topic, project_name: str, recent_titles: Sequence[str] = ()) -> str:
    prompt = (
        f"You are a tech journalist for {project_name}. "
        "Create a very short (max 5-7 words), catchy headline for this topic.\n"
        "Return ONLY the text, no quotes.\n"
    )
    if recent_titles:
        avoided = "\n".join(f"- {t}" for t in recent_titles)
        prompt += f"Do not reuse or closely imitate these recent headlines:\n{avoided}\n"
    prompt += f"Topic: {topic.title} - {topic.summary}"
    return prompt


def clean_headline(text: str) -> str:
    line = text.strip().splitlines()[0] if text.strip() else ""
    return line.strip().strip(_QUOTES).strip()


async def generate_headline(
    *,
    llm: ChatClient,
    topic: Topic,
    project_name: str,
    recent_titles: Optional[Sequence[str]] = None,
    temperature: float = 0.8,
    max_tokens: int = 30,
) -> str:
    """
    Ask the model for a short headline. Falls back to the topic's own title.
    """
    headline = ""
    try:
        response = await llm.complete(
            build_prompt(topic, project_name, recent_titles or ()),
            temperature=temperature,
            max_tokens=max_tokens,
        )
        headline = clean_headline(response["content"])
    except LLMError as e:
        logger.error(f"Failed to generate title: {e}")

    if not headline:
        logger.warning(f"Falling back to topic title: {topic.title}")
        headline = topic.title

    return normalize_brand(headline, project_name)
