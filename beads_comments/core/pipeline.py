"""
Comment retrieval pipeline.

Coordinates fetching comment and like records in parallel, narrowing comments to
beads subjects, resolving author profiles, assembling and threading comments, and
finally selecting the requested root comments.
"""

import asyncio
import logging
from fnmatch import fnmatchcase
from typing import List, Optional, Tuple

import httpx

from beads_comments.config.settings import Settings
from beads_comments.core.assembler import assemble_comments
from beads_comments.core.constants import COMMENT_COLLECTION, LIKE_COLLECTION
from beads_comments.core.indexer_client import (
    DEFAULT_MAX_PAGES,
    DEFAULT_PAGE_SIZE,
    IndexerClient,
    IndexerError,
)
from beads_comments.core.profile_resolver import DEFAULT_PROFILE_CONCURRENCY, resolve_profiles
from beads_comments.core.record_filter import filter_beads_comments
from beads_comments.core.thread_builder import build_threads
from beads_comments.models.dtos import BeadsComment, FetchOptions, IndexerRecord

logger = logging.getLogger(__name__)


def select_comments(forest: List[BeadsComment], options: FetchOptions) -> List[BeadsComment]:
    """
    Apply a ``FetchOptions`` selection to the root level of a forest.

    An exact ``beads_id`` takes precedence over ``pattern``; with neither, every root
    is kept. ``limit`` then truncates the root list (0 = no truncation). Replies are
    never filtered or truncated.
    """
    if options.beads_id:
        roots = [c for c in forest if c.node_id == options.beads_id]
    elif options.pattern:
        roots = [c for c in forest if fnmatchcase(c.node_id, options.pattern)]
    else:
        roots = list(forest)

    if options.limit > 0:
        roots = roots[:options.limit]
    return roots


class CommentPipeline:
    """
    Orchestrates comment retrieval for beads issues.

    Each ``run`` works on its own record lists, profile map and forest; nothing is
    cached between runs.
    """

    def __init__(
        self,
        indexer_url: str,
        profile_api_url: str,
        client: Optional[httpx.AsyncClient] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
        profile_concurrency: int = DEFAULT_PROFILE_CONCURRENCY,
        timeout: float = 30.0,
    ):
        """
        Args:
            indexer_url: GraphQL endpoint of the record indexer
            profile_api_url: Base URL of the public profile API
            client: Shared HTTP client; a fresh one is opened per run when omitted
            page_size: Records requested per indexer page
            max_pages: Page cap per collection
            profile_concurrency: Maximum concurrent profile lookups
            timeout: Request timeout in seconds for an owned client
        """
        self.indexer_url = indexer_url
        self.profile_api_url = profile_api_url
        self.client = client
        self.page_size = page_size
        self.max_pages = max_pages
        self.profile_concurrency = profile_concurrency
        self.timeout = timeout

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        indexer_url: Optional[str] = None,
        profile_api_url: Optional[str] = None,
    ) -> "CommentPipeline":
        return cls(
            indexer_url=indexer_url or settings.indexer_url,
            profile_api_url=profile_api_url or settings.profile_api_url,
            page_size=settings.page_size,
            max_pages=settings.max_pages,
            profile_concurrency=settings.profile_concurrency,
            timeout=settings.request_timeout,
        )

    async def _fetch_likes(self, indexer: IndexerClient) -> List[IndexerRecord]:
        """Fetch like records, degrading to no likes if the indexer fails."""
        try:
            return await indexer.fetch_records(LIKE_COLLECTION)
        except IndexerError as e:
            logger.warning(f"Like fetch failed, continuing without likes: {e}")
            return []

    async def _fetch_records(
        self, indexer: IndexerClient
    ) -> Tuple[List[IndexerRecord], List[IndexerRecord]]:
        """Fetch comments and likes concurrently; a comment failure cancels the like fetch."""
        comments_task = asyncio.ensure_future(indexer.fetch_records(COMMENT_COLLECTION))
        likes_task = asyncio.ensure_future(self._fetch_likes(indexer))
        try:
            comment_records, like_records = await asyncio.gather(comments_task, likes_task)
        except Exception:
            likes_task.cancel()
            await asyncio.gather(likes_task, return_exceptions=True)
            raise
        return comment_records, like_records

    async def run(self, options: Optional[FetchOptions] = None) -> List[BeadsComment]:
        """
        Fetch, assemble, thread and select comments.

        Args:
            options: Root-level selection; everything is returned when omitted

        Returns:
            List[BeadsComment]: Selected root comments, newest first

        Raises:
            IndexerError: If the comment collection cannot be fetched
        """
        options = options or FetchOptions()

        if self.client is None:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout)) as client:
                return await self._run(client, options)
        return await self._run(self.client, options)

    async def _run(self, client: httpx.AsyncClient, options: FetchOptions) -> List[BeadsComment]:
        indexer = IndexerClient(
            self.indexer_url,
            client=client,
            page_size=self.page_size,
            max_pages=self.max_pages,
        )

        try:
            comment_records, like_records = await self._fetch_records(indexer)
        except IndexerError as e:
            logger.error(f"Comment fetch from {self.indexer_url} failed: {e}")
            raise

        beads_records = filter_beads_comments(comment_records)
        dids = list(dict.fromkeys(record.did for record in beads_records))

        profiles = await resolve_profiles(
            self.profile_api_url,
            dids,
            client=client,
            concurrency=self.profile_concurrency,
        )

        comments = assemble_comments(beads_records, like_records, profiles)
        forest = build_threads(comments)
        selected = select_comments(forest, options)

        logger.info(
            f"Fetched {len(comment_records)} comment records ({len(beads_records)} for beads), "
            f"{len(like_records)} likes, {len(dids)} authors; returning {len(selected)} threads"
        )
        return selected


async def fetch_comments(
    indexer_url: str,
    profile_api_url: str,
    options: Optional[FetchOptions] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> List[BeadsComment]:
    """Fetch threaded beads comments selected by ``options``."""
    pipeline = CommentPipeline(indexer_url, profile_api_url, client=client)
    return await pipeline.run(options)
