"""
Selection of beads records and typed access to their dynamic payload.

Record payloads come from an untrusted indexer, so every field is read through an
extractor that returns a documented default on absence or type mismatch instead of
raising.
"""

from typing import Any, Dict, List, Mapping, Optional

from beads_comments.core.constants import BEADS_URI_PREFIX
from beads_comments.models.dtos import IndexerRecord


def get_str(payload: Mapping[str, Any], key: str, default: str = "") -> str:
    """Return ``payload[key]`` if it is a string, else ``default``."""
    value = payload.get(key)
    return value if isinstance(value, str) else default


def get_mapping(payload: Mapping[str, Any], key: str) -> Optional[Dict[str, Any]]:
    """Return ``payload[key]`` if it is a JSON object, else ``None``."""
    value = payload.get(key)
    return value if isinstance(value, dict) else None


def subject_uri(payload: Mapping[str, Any]) -> Optional[str]:
    """
    Return the ``subject.uri`` string of a record payload.

    Returns ``None`` when ``subject`` is missing or not an object, or when its
    ``uri`` is missing or not a string.
    """
    subject = get_mapping(payload, "subject")
    if subject is None:
        return None
    uri = subject.get("uri")
    return uri if isinstance(uri, str) else None


def filter_beads_comments(records: List[IndexerRecord]) -> List[IndexerRecord]:
    """Keep only records whose ``value.subject.uri`` starts with ``beads:``."""
    filtered: List[IndexerRecord] = []
    for record in records:
        uri = subject_uri(record.value)
        if uri is not None and uri.startswith(BEADS_URI_PREFIX):
            filtered.append(record)
    return filtered


def extract_node_id(record: IndexerRecord) -> str:
    """
    Extract the beads issue ID from a record's ``value.subject.uri``.

    For ``subject.uri == "beads:my-issue-123"`` this returns ``"my-issue-123"``.
    Returns an empty string when the record has no usable subject URI.
    """
    uri = subject_uri(record.value)
    if uri is None:
        return ""
    if uri.startswith(BEADS_URI_PREFIX):
        return uri[len(BEADS_URI_PREFIX):]
    return uri
