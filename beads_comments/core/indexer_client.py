"""
GraphQL indexer client.

Fetches every record of a named collection from the indexer, following the
``pageInfo`` cursor page by page up to a fixed page cap.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from beads_comments.models.dtos import GraphQLResponse, IndexerRecord

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100
DEFAULT_MAX_PAGES = 5

FETCH_RECORDS_QUERY = """query FetchRecords($collection: String!, $first: Int, $after: String) {
  records(collection: $collection, first: $first, after: $after) {
    edges {
      node {
        cid
        collection
        did
        rkey
        uri
        value
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}"""


class IndexerError(Exception):
    """Raised when a collection cannot be fetched from the indexer."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class IndexerClient:
    """
    Async client for the record indexer.

    No retries: any failing page aborts the whole collection fetch and nothing
    fetched so far is returned.
    """

    def __init__(
        self,
        indexer_url: str,
        client: Optional[httpx.AsyncClient] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
        timeout: float = 30.0,
    ):
        """
        Initialize the indexer client.

        Args:
            indexer_url: GraphQL endpoint of the indexer
            client: Shared HTTP client; one is created (and owned) when omitted
            page_size: Records requested per page
            max_pages: Pages fetched at most per collection; further pages are
                silently left unfetched
            timeout: Request timeout in seconds for an owned client
        """
        self.indexer_url = indexer_url
        self.page_size = page_size
        self.max_pages = max_pages
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "IndexerClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _fetch_page(self, variables: Dict[str, Any]) -> GraphQLResponse:
        """
        Fetch a single page of records.

        Raises:
            IndexerError: On transport failure, non-200 status, undecodable body or
                a GraphQL error list (reported with its first message)
        """
        payload = {"query": FETCH_RECORDS_QUERY, "variables": variables}

        try:
            response = await self.client.post(
                self.indexer_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise IndexerError(f"failed to execute request: {e}") from e

        if response.status_code != 200:
            raise IndexerError(
                f"unexpected status code: {response.status_code}", response.status_code
            )

        try:
            body = GraphQLResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise IndexerError(f"failed to decode response: {e}") from e

        if body.errors:
            raise IndexerError(f"graphql error: {body.errors[0].message}")

        return body

    async def fetch_records(self, collection: str) -> List[IndexerRecord]:
        """
        Fetch all records of ``collection``, up to ``max_pages`` pages.

        Args:
            collection: Lexicon name of the collection

        Returns:
            List[IndexerRecord]: Records in the order the indexer returned them

        Raises:
            IndexerError: If any page request fails
        """
        records: List[IndexerRecord] = []
        cursor: Optional[str] = None

        for page in range(self.max_pages):
            variables: Dict[str, Any] = {"collection": collection, "first": self.page_size}
            if cursor is not None:
                variables["after"] = cursor

            logger.debug(f"Fetching page {page + 1} of {collection} (after={cursor})")
            body = await self._fetch_page(variables)

            if body.data is None or body.data.records is None:
                break

            records.extend(edge.node for edge in body.data.records.edges)

            page_info = body.data.records.page_info
            if not page_info.has_next_page:
                break

            cursor = page_info.end_cursor
            if cursor is None:
                break
        else:
            logger.debug(f"Stopped {collection} fetch at the {self.max_pages}-page cap")

        logger.debug(f"Fetched {len(records)} records from {collection}")
        return records


async def fetch_records_by_collection(
    indexer_url: str,
    collection: str,
    client: Optional[httpx.AsyncClient] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> List[IndexerRecord]:
    """Fetch every record of ``collection`` from the indexer at ``indexer_url``."""
    async with IndexerClient(
        indexer_url, client=client, page_size=page_size, max_pages=max_pages
    ) as indexer:
        return await indexer.fetch_records(collection)
