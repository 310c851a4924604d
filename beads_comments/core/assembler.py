"""
Comment assembly.

Joins filtered comment records with like counts and resolved author profiles into
flat ``BeadsComment`` objects. Threading happens afterwards in the thread builder.
"""

from collections import Counter
from typing import Dict, List, Mapping

from beads_comments.core.record_filter import extract_node_id, get_str, subject_uri
from beads_comments.models.dtos import BeadsComment, IndexerRecord, Profile


def count_likes(like_records: List[IndexerRecord]) -> Dict[str, int]:
    """Count like records per liked subject URI, skipping malformed likes."""
    counts: Counter = Counter()
    for like in like_records:
        uri = subject_uri(like.value)
        if uri is not None:
            counts[uri] += 1
    return dict(counts)


def assemble_comments(
    comment_records: List[IndexerRecord],
    like_records: List[IndexerRecord],
    profiles: Mapping[str, Profile],
) -> List[BeadsComment]:
    """
    Convert raw comment records into ``BeadsComment`` objects.

    Args:
        comment_records: Comment records already narrowed to beads subjects
        like_records: All like records; matched to comments by content URI
        profiles: Resolved profiles keyed by author identifier

    Returns:
        List[BeadsComment]: One comment per record, in input order, without replies
    """
    like_counts = count_likes(like_records)

    comments: List[BeadsComment] = []
    for record in comment_records:
        profile = profiles.get(record.did) or Profile.fallback(record.did)
        comments.append(
            BeadsComment(
                did=record.did,
                handle=profile.handle,
                display_name=profile.display_name or "",
                text=get_str(record.value, "text"),
                created_at=get_str(record.value, "createdAt"),
                uri=record.uri,
                rkey=record.rkey,
                node_id=extract_node_id(record),
                reply_to=get_str(record.value, "replyTo"),
                likes=like_counts.get(record.uri, 0),
            )
        )
    return comments
