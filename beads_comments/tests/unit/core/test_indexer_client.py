"""
Unit tests for the GraphQL indexer client.

Covers pagination, the page cap, and every failure mode of a page request.
"""

import httpx
import pytest

from beads_comments.core.constants import COMMENT_COLLECTION
from beads_comments.core.indexer_client import (
    FETCH_RECORDS_QUERY,
    IndexerClient,
    IndexerError,
    fetch_records_by_collection,
)
from beads_comments.tests.factories import INDEXER_URL, graphql_page, make_record


@pytest.mark.asyncio
async def test_fetch_records_single_page(services):
    """A single page is fetched with the fixed query and first=100."""
    services.set_records(COMMENT_COLLECTION, [
        make_record("at://did:plc:alice/c/1"),
        make_record("at://did:plc:alice/c/2"),
    ])

    async with services.client() as client:
        records = await fetch_records_by_collection(INDEXER_URL, COMMENT_COLLECTION, client=client)

    assert [r.uri for r in records] == ["at://did:plc:alice/c/1", "at://did:plc:alice/c/2"]
    assert records[0].did == "did:plc:alice"
    assert records[0].value["subject"]["uri"] == "beads:test-issue"

    assert len(services.indexer_requests) == 1
    request = services.indexer_requests[0]
    assert request["query"] == FETCH_RECORDS_QUERY
    assert request["variables"] == {"collection": COMMENT_COLLECTION, "first": 100}


@pytest.mark.asyncio
async def test_fetch_records_follows_cursor(services):
    """Two pages are concatenated and the second request carries the cursor."""
    services.pages[COMMENT_COLLECTION] = [
        graphql_page([make_record("at://x/c/1")], has_next_page=True, end_cursor="cursor-1"),
        graphql_page([make_record("at://x/c/2")], has_next_page=False),
    ]

    async with services.client() as client:
        records = await fetch_records_by_collection(INDEXER_URL, COMMENT_COLLECTION, client=client)

    assert [r.uri for r in records] == ["at://x/c/1", "at://x/c/2"]
    assert len(services.indexer_requests) == 2
    assert "after" not in services.indexer_requests[0]["variables"]
    assert services.indexer_requests[1]["variables"]["after"] == "cursor-1"


@pytest.mark.asyncio
async def test_fetch_records_stops_at_page_cap(services):
    """An indexer that always reports more pages is read for five pages only."""
    def always_more(variables):
        page = len(services.indexer_requests)
        records = [make_record(f"at://x/c/{page}-{i}") for i in range(100)]
        return httpx.Response(200, json=graphql_page(records, has_next_page=True, end_cursor=f"c{page}"))

    services.indexer_responses[COMMENT_COLLECTION] = always_more

    async with services.client() as client:
        records = await fetch_records_by_collection(INDEXER_URL, COMMENT_COLLECTION, client=client)

    assert len(records) == 500
    assert len(services.indexer_requests) == 5


@pytest.mark.asyncio
async def test_fetch_records_page_cap_is_adjustable(services):
    services.indexer_responses[COMMENT_COLLECTION] = lambda variables: httpx.Response(
        200, json=graphql_page([make_record("at://x/c/1")], has_next_page=True, end_cursor="next")
    )

    async with services.client() as client:
        indexer = IndexerClient(INDEXER_URL, client=client, page_size=10, max_pages=2)
        records = await indexer.fetch_records(COMMENT_COLLECTION)

    assert len(records) == 2
    assert [r["variables"]["first"] for r in services.indexer_requests] == [10, 10]


@pytest.mark.asyncio
async def test_fetch_records_stops_without_cursor(services):
    """hasNextPage without an endCursor ends pagination."""
    services.pages[COMMENT_COLLECTION] = [
        graphql_page([make_record("at://x/c/1")], has_next_page=True),
        graphql_page([make_record("at://x/c/2")]),
    ]

    async with services.client() as client:
        records = await fetch_records_by_collection(INDEXER_URL, COMMENT_COLLECTION, client=client)

    assert len(records) == 1
    assert len(services.indexer_requests) == 1


@pytest.mark.asyncio
async def test_fetch_records_empty_collection(services):
    async with services.client() as client:
        records = await fetch_records_by_collection(INDEXER_URL, COMMENT_COLLECTION, client=client)

    assert records == []


@pytest.mark.asyncio
async def test_fetch_records_null_data_ends_pagination(services):
    services.indexer_responses[COMMENT_COLLECTION] = lambda variables: httpx.Response(
        200, json={"data": {"records": None}}
    )

    async with services.client() as client:
        records = await fetch_records_by_collection(INDEXER_URL, COMMENT_COLLECTION, client=client)

    assert records == []


@pytest.mark.asyncio
async def test_fetch_records_http_error_status(services):
    """A non-200 status aborts the fetch with the status code attached."""
    services.indexer_responses[COMMENT_COLLECTION] = lambda variables: httpx.Response(500, text="boom")

    async with services.client() as client:
        with pytest.raises(IndexerError) as exc_info:
            await fetch_records_by_collection(INDEXER_URL, COMMENT_COLLECTION, client=client)

    assert "unexpected status code: 500" in str(exc_info.value)
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_fetch_records_graphql_error(services):
    """The first GraphQL error message becomes the exception message."""
    services.indexer_responses[COMMENT_COLLECTION] = lambda variables: httpx.Response(
        200, json={"errors": [{"message": "collection not found"}, {"message": "second"}]}
    )

    async with services.client() as client:
        with pytest.raises(IndexerError, match="graphql error: collection not found"):
            await fetch_records_by_collection(INDEXER_URL, COMMENT_COLLECTION, client=client)


@pytest.mark.asyncio
async def test_fetch_records_malformed_body(services):
    services.indexer_responses[COMMENT_COLLECTION] = lambda variables: httpx.Response(200, text="not json")

    async with services.client() as client:
        with pytest.raises(IndexerError, match="failed to decode response"):
            await fetch_records_by_collection(INDEXER_URL, COMMENT_COLLECTION, client=client)


@pytest.mark.asyncio
async def test_fetch_records_failure_discards_earlier_pages(services):
    """A failing second page yields an error, not a partial result."""
    def second_page_fails(variables):
        if "after" in variables:
            return httpx.Response(502)
        return httpx.Response(200, json=graphql_page([make_record("at://x/c/1")], True, "next"))

    services.indexer_responses[COMMENT_COLLECTION] = second_page_fails

    async with services.client() as client:
        with pytest.raises(IndexerError):
            await fetch_records_by_collection(INDEXER_URL, COMMENT_COLLECTION, client=client)

    assert len(services.indexer_requests) == 2


@pytest.mark.asyncio
async def test_fetch_records_transport_error():
    """Connection failures are reported as IndexerError."""
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(refuse)) as client:
        with pytest.raises(IndexerError, match="failed to execute request"):
            await fetch_records_by_collection(INDEXER_URL, COMMENT_COLLECTION, client=client)


@pytest.mark.asyncio
async def test_client_does_not_close_shared_client(services):
    client = services.client()
    async with IndexerClient(INDEXER_URL, client=client):
        pass

    assert not client.is_closed
    await client.aclose()
