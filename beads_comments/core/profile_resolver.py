"""
Author profile resolution.

Looks up the public profile of every comment author with a bounded number of
concurrent requests. Resolution never fails: any per-author error yields a
fallback profile whose handle is the author identifier itself.
"""

import asyncio
import logging
from typing import Dict, Iterable, Optional

import httpx
from pydantic import ValidationError

from beads_comments.core.constants import PROFILE_OPERATION
from beads_comments.models.dtos import Profile

logger = logging.getLogger(__name__)

DEFAULT_PROFILE_CONCURRENCY = 5


async def fetch_profile(client: httpx.AsyncClient, api_url: str, did: str) -> Profile:
    """
    Fetch a single profile, falling back to ``Profile.fallback(did)`` on any error.

    Cancellation is not an error and propagates to the caller.
    """
    url = f"{api_url.rstrip('/')}/xrpc/{PROFILE_OPERATION}"
    try:
        response = await client.get(url, params={"actor": did})
        if response.status_code != 200:
            logger.debug(f"Profile lookup for {did} returned HTTP {response.status_code}")
            return Profile.fallback(did)
        return Profile.model_validate_json(response.content)
    except (httpx.HTTPError, httpx.InvalidURL, ValidationError, ValueError) as e:
        logger.debug(f"Profile lookup for {did} failed: {e}")
        return Profile.fallback(did)


async def resolve_profiles(
    api_url: str,
    dids: Iterable[str],
    client: Optional[httpx.AsyncClient] = None,
    concurrency: int = DEFAULT_PROFILE_CONCURRENCY,
    timeout: float = 30.0,
) -> Dict[str, Profile]:
    """
    Resolve profiles for a list of author identifiers.

    Args:
        api_url: Base URL of the public profile API
        dids: Author identifiers; duplicates are looked up once
        client: Shared HTTP client; one is created for this call when omitted
        concurrency: Maximum number of lookups in flight at once
        timeout: Request timeout in seconds for an owned client

    Returns:
        Dict[str, Profile]: One entry per unique identifier. Never raises for
        lookup failures.
    """
    unique_dids = list(dict.fromkeys(dids))
    if not unique_dids:
        return {}

    if client is None:
        async with httpx.AsyncClient(timeout=httpx.Timeout(timeout)) as owned_client:
            return await resolve_profiles(api_url, unique_dids, owned_client, concurrency)

    profiles: Dict[str, Profile] = {}
    profiles_lock = asyncio.Lock()
    semaphore = asyncio.Semaphore(concurrency)

    async def resolve_one(did: str) -> None:
        async with semaphore:
            profile = await fetch_profile(client, api_url, did)
        async with profiles_lock:
            profiles[did] = profile

    logger.debug(f"Resolving {len(unique_dids)} profiles ({concurrency} concurrent)")
    await asyncio.gather(*(resolve_one(did) for did in unique_dids))
    return profiles
