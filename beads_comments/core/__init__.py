"""
Core components of the beads comments read path.
"""

from .assembler import assemble_comments
from .indexer_client import IndexerClient, IndexerError, fetch_records_by_collection
from .pipeline import CommentPipeline, fetch_comments, select_comments
from .profile_resolver import resolve_profiles
from .record_filter import extract_node_id, filter_beads_comments
from .thread_builder import build_threads

__all__ = [
    "assemble_comments",
    "build_threads",
    "CommentPipeline",
    "extract_node_id",
    "fetch_comments",
    "fetch_records_by_collection",
    "filter_beads_comments",
    "IndexerClient",
    "IndexerError",
    "resolve_profiles",
    "select_comments",
]
