"""
Models package for the beads comments client.

This package contains the Pydantic DTOs shared by the core pipeline, the write
path and the output formatters.
"""

from .dtos import (
    BeadsComment,
    CreateCommentInput,
    CreateCommentOutput,
    FetchOptions,
    GraphQLResponse,
    IndexerRecord,
    PageInfo,
    Profile,
    RecordsPage,
)

__all__ = [
    "BeadsComment",
    "CreateCommentInput",
    "CreateCommentOutput",
    "FetchOptions",
    "GraphQLResponse",
    "IndexerRecord",
    "PageInfo",
    "Profile",
    "RecordsPage",
]
