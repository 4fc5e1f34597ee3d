"""
Source Factory - Creates ingestion adapters from configuration.
"""
import logging
from typing import List, Optional

import httpx

from ingestion.base import SourceAdapter
from ingestion.bluesky import BlueskyAdapter
from ingestion.github import GitHubAdapter
from services.config import Config

logger = logging.getLogger(__name__)


def create_adapters_from_config(
    config: Config,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[SourceAdapter]:
    """
    Create all enabled source adapters from configuration.

    Args:
        config: Loaded configuration
        transport: Optional httpx transport shared by every adapter

    Returns:
        List of configured SourceAdapter instances, GitHub first

    Raises:
        ConfigError: If an enabled source is missing its credential
    """
    adapters: List[SourceAdapter] = []

    if config.github.enabled:
        adapters.append(
            GitHubAdapter(
                owner=config.github.owner,
                repo=config.github.repo,
                token=config.GITHUB_TOKEN,
                filters=config.github.filters,
                per_page=config.github.per_page,
                timeout=config.github.timeout,
                transport=transport,
            )
        )
    else:
        logger.info("GitHub source is disabled, skipping")

    if config.bluesky.enabled:
        adapters.append(
            BlueskyAdapter(
                handle=config.bluesky.handle,
                page_limit=config.bluesky.page_limit,
                max_pages=config.bluesky.max_pages,
                timeout=config.bluesky.timeout,
                transport=transport,
            )
        )
    else:
        logger.info("Bluesky source is disabled, skipping")

    logger.info(f"Created {len(adapters)} source adapters: {[a.name for a in adapters]}")
    return adapters
