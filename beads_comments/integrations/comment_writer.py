"""
Comment write path.

This module provides an async client that posts new beads comments (and replies)
to the author's personal data server as ``org.impactindexer.review.comment``
records.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from beads_comments.core.constants import (
    BEADS_URI_PREFIX,
    COMMENT_COLLECTION,
    CREATE_RECORD_OPERATION,
    GET_SESSION_OPERATION,
)
from beads_comments.models.dtos import CreateCommentInput, CreateCommentOutput

logger = logging.getLogger(__name__)


class CommentWriteError(Exception):
    """Raised when the personal data server rejects or fails a write."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class AuthenticationRequiredError(CommentWriteError):
    """Raised when no access token is available for the write path."""


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """Return an RFC 3339 UTC timestamp with second precision, e.g. ``2025-01-15T10:00:00Z``."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_comment_record(comment: CreateCommentInput, created_at: str) -> Dict[str, Any]:
    """Build the record body of a beads comment; ``replyTo`` is omitted for root comments."""
    record: Dict[str, Any] = {
        "$type": COMMENT_COLLECTION,
        "subject": {
            "uri": BEADS_URI_PREFIX + comment.beads_id,
            "type": "record",
        },
        "text": comment.text,
        "createdAt": created_at,
    }
    if comment.reply_to:
        record["replyTo"] = comment.reply_to
    return record


class CommentWriter:
    """
    Async client for creating comment records.

    Session storage and token refresh are handled elsewhere; this client only needs
    a valid access token.
    """

    def __init__(
        self,
        pds_url: str,
        access_jwt: Optional[str],
        did: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize the comment writer.

        Args:
            pds_url: Base URL of the personal data server
            access_jwt: Access token of the authenticated session
            did: Author identifier; looked up from the session when omitted
            client: Shared HTTP client; one is created (and owned) when omitted
            timeout: Request timeout in seconds for an owned client
        """
        if not access_jwt:
            raise AuthenticationRequiredError("authentication required: no access token configured")

        self.pds_url = pds_url.rstrip("/")
        self.did = did
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._headers = {"Authorization": f"Bearer {access_jwt}"}

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "CommentWriter":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _call(self, method: str, operation: str, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self.pds_url}/xrpc/{operation}"
        try:
            response = await self.client.request(method, url, headers=self._headers, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise CommentWriteError(f"{operation} failed: {e}") from e

        if response.status_code == 401:
            raise AuthenticationRequiredError(
                f"{operation} rejected the access token", response.status_code
            )
        if response.status_code != 200:
            raise CommentWriteError(
                f"{operation} returned HTTP {response.status_code}: {response.text}",
                response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise CommentWriteError(f"failed to decode {operation} response: {e}") from e
        if not isinstance(data, dict):
            raise CommentWriteError(f"unexpected {operation} response: {data!r}")
        return data

    async def resolve_did(self) -> str:
        """Return the author identifier, asking the server for the session once if needed."""
        if self.did is None:
            session = await self._call("GET", GET_SESSION_OPERATION)
            did = session.get("did")
            if not isinstance(did, str) or not did:
                raise CommentWriteError("session response carries no did")
            self.did = did
        return self.did

    async def create_comment(
        self, comment: CreateCommentInput, created_at: Optional[str] = None
    ) -> CreateCommentOutput:
        """
        Post a comment on a beads issue.

        Args:
            comment: Target issue, text and optional parent URI
            created_at: Creation timestamp; the current UTC time when omitted

        Returns:
            CreateCommentOutput: URI and content hash of the new record

        Raises:
            CommentWriteError: If the server rejects the record
        """
        did = await self.resolve_did()
        body = {
            "repo": did,
            "collection": COMMENT_COLLECTION,
            "record": build_comment_record(comment, created_at or utc_timestamp()),
        }

        data = await self._call("POST", CREATE_RECORD_OPERATION, json=body)
        try:
            output = CreateCommentOutput.model_validate(data)
        except ValidationError as e:
            raise CommentWriteError(f"unexpected {CREATE_RECORD_OPERATION} response: {e}") from e

        logger.info(f"Created comment {output.uri} on beads:{comment.beads_id}")
        return output
