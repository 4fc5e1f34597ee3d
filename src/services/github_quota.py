"""
Report the GitHub rate-limit resource that backs the inference token
"""
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

RATE_LIMIT_URL = "https://api.github.com/rate_limit"


class RateLimitInfo(BaseModel):
    resource: str
    limit: int
    remaining: int
    reset: int
    used: int

    @property
    def reset_at(self) -> datetime:
        return datetime.fromtimestamp(self.reset, tz=timezone.utc)

    def minutes_until_reset(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        return round((self.reset_at - now).total_seconds() / 60)


async def check_quota(
    token: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Optional[RateLimitInfo]:
    """
    Return the `models` resource (or `marketplace` on older accounts).
    Returns None, after logging the resources the token does have, when
    neither is available.

    Raises:
        httpx.HTTPError: On network failure or a non-OK response.
    """
    headers = {
        "Authorization": f"Bearer {token}",
        "X-GitHub-Api-Version": "2022-11-28",
        "Accept": "application/vnd.github+json",
    }

    async with httpx.AsyncClient(timeout=15, headers=headers, transport=transport) as client:
        resp = await client.get(RATE_LIMIT_URL)
        resp.raise_for_status()
        resources = resp.json().get("resources", {})

    for name in ("models", "marketplace"):
        if name in resources:
            return RateLimitInfo(resource=name, **resources[name])

    logger.warning(f"No models resource on this token. Available resources: {sorted(resources)}")
    return None
