"""
Pydantic Data Transfer Objects (DTOs) for the beads comments client.

These models cover the indexer wire format, resolved author profiles, the assembled
comment tree handed back to callers, and the inputs/outputs of the write path.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IndexerRecord(BaseModel):
    """
    One raw record returned by the GraphQL indexer.

    ``value`` is the untyped record payload; fields inside it are read through the
    typed extractors in ``beads_comments.core.record_filter`` and never trusted.
    """
    cid: str = ""
    collection: str = ""
    did: str = ""
    rkey: str = ""
    uri: str = ""
    value: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("cid", "collection", "did", "rkey", "uri", mode="before")
    @classmethod
    def null_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("value", mode="before")
    @classmethod
    def null_to_empty_value(cls, v: Any) -> Any:
        return {} if v is None else v


class RecordEdge(BaseModel):
    node: IndexerRecord


class PageInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    has_next_page: bool = Field(default=False, alias="hasNextPage")
    end_cursor: Optional[str] = Field(default=None, alias="endCursor")


class RecordsPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    edges: List[RecordEdge] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")

    @field_validator("edges", mode="before")
    @classmethod
    def null_to_empty_edges(cls, v: Any) -> Any:
        return [] if v is None else v


class GraphQLData(BaseModel):
    records: Optional[RecordsPage] = None


class GraphQLError(BaseModel):
    message: str = ""


class GraphQLResponse(BaseModel):
    """Envelope of a single indexer page response."""
    data: Optional[GraphQLData] = None
    errors: Optional[List[GraphQLError]] = None


class Profile(BaseModel):
    """
    Public profile of a comment author.

    A fallback profile (handle equal to the identifier) has exactly the same shape
    as a resolved one.
    """
    model_config = ConfigDict(populate_by_name=True)

    did: str
    handle: str
    display_name: Optional[str] = Field(default=None, alias="displayName")
    avatar: Optional[str] = None

    @classmethod
    def fallback(cls, did: str) -> "Profile":
        return cls(did=did, handle=did)


class BeadsComment(BaseModel):
    """
    An assembled comment on a beads issue, with its replies nested inside.

    Serialises with the camelCase field names of the JSON output contract;
    ``displayName``, ``replyTo`` and ``replies`` are omitted when empty.
    """
    model_config = ConfigDict(populate_by_name=True)

    did: str = ""
    handle: str = ""
    display_name: str = Field(default="", alias="displayName")
    text: str = ""
    created_at: str = Field(default="", alias="createdAt")
    uri: str = ""
    rkey: str = ""
    node_id: str = Field(default="", alias="nodeId")
    reply_to: str = Field(default="", alias="replyTo")
    likes: int = Field(default=0, ge=0)
    replies: List["BeadsComment"] = Field(default_factory=list)

    def json_fields(self) -> Dict[str, Any]:
        """Return the JSON-contract fields of this comment alone, without ``replies``."""
        data: Dict[str, Any] = {
            "did": self.did,
            "handle": self.handle,
        }
        if self.display_name:
            data["displayName"] = self.display_name
        data["text"] = self.text
        data["createdAt"] = self.created_at
        data["uri"] = self.uri
        data["rkey"] = self.rkey
        data["nodeId"] = self.node_id
        if self.reply_to:
            data["replyTo"] = self.reply_to
        data["likes"] = self.likes
        return data

    def to_json_dict(self) -> Dict[str, Any]:
        """
        Return the JSON-contract representation of this comment and its replies.

        Walks the tree with an explicit stack, so reply depth is not bounded by the
        interpreter's recursion limit.
        """
        root = self.json_fields()
        stack = [(self, root)]
        while stack:
            comment, data = stack.pop()
            if not comment.replies:
                continue
            data["replies"] = []
            for reply in comment.replies:
                reply_data = reply.json_fields()
                data["replies"].append(reply_data)
                stack.append((reply, reply_data))
        return root


BeadsComment.model_rebuild()


class FetchOptions(BaseModel):
    """
    Selection applied to the assembled forest.

    ``beads_id`` is an exact node ID match, ``pattern`` a glob over node IDs (used only
    when ``beads_id`` is empty) and ``limit`` caps the number of root comments
    (0 = unlimited). Only root membership is filtered; replies are always kept.
    """
    beads_id: str = ""
    pattern: str = ""
    limit: int = Field(default=0, ge=0)


class CreateCommentInput(BaseModel):
    """Parameters for posting a new comment or reply."""
    beads_id: str = Field(..., min_length=1, description="The beads issue ID to comment on.")
    text: str = Field(..., description="Comment text.")
    reply_to: str = Field("", description="Optional content URI of the parent comment.")


class CreateCommentOutput(BaseModel):
    """Identifiers of a freshly created comment record."""
    uri: str
    cid: str
