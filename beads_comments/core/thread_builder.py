"""
Reply-tree construction for flat comment lists.

Every input comment lives at a fixed slot of an arena (its position in the input
list). Parent/child links are kept as lists of slot numbers, so attaching a reply
never moves a comment and deeper replies always find their parent regardless of
input order. The nested ``BeadsComment`` trees are materialised once all links
are known.
"""

from collections import defaultdict
from typing import Dict, List

from beads_comments.models.dtos import BeadsComment


def _closes_loop(child: int, parent: int, parent_of: Dict[int, int]) -> bool:
    """Return True if ``child`` is ``parent`` or one of its ancestors."""
    slot = parent
    while True:
        if slot == child:
            return True
        if slot not in parent_of:
            return False
        slot = parent_of[slot]


def build_threads(comments: List[BeadsComment]) -> List[BeadsComment]:
    """
    Build threaded comment trees from a flat list.

    A comment whose ``reply_to`` names another comment's URI is nested in that
    comment's replies. Comments without ``reply_to``, and replies whose parent is
    not in the list (orphans), are roots. Roots are ordered newest first, replies
    oldest first at every depth; ties keep input order. Timestamps are compared
    as plain strings.

    The input comments are not modified.

    Returns:
        List[BeadsComment]: Root comments with replies nested inside
    """
    slot_by_uri: Dict[str, int] = {}
    for slot, comment in enumerate(comments):
        slot_by_uri[comment.uri] = slot

    children: Dict[int, List[int]] = defaultdict(list)
    parent_of: Dict[int, int] = {}
    roots: List[int] = []

    for slot, comment in enumerate(comments):
        if not comment.reply_to:
            roots.append(slot)
            continue

        parent = slot_by_uri.get(comment.reply_to)
        # Orphans and replies that would close a loop are promoted to roots
        if parent is None or _closes_loop(slot, parent, parent_of):
            roots.append(slot)
            continue

        children[parent].append(slot)
        parent_of[slot] = parent

    roots.sort(key=lambda s: comments[s].created_at, reverse=True)
    return [_materialize(root, comments, children) for root in roots]


def _materialize(
    root: int, comments: List[BeadsComment], children: Dict[int, List[int]]
) -> BeadsComment:
    """Copy the subtree at ``root`` bottom-up, each node after all of its replies."""
    built: Dict[int, BeadsComment] = {}
    stack = [(root, False)]
    while stack:
        slot, expanded = stack.pop()
        reply_slots = sorted(children.get(slot, []), key=lambda s: comments[s].created_at)
        if expanded:
            built[slot] = comments[slot].model_copy(
                update={"replies": [built.pop(s) for s in reply_slots]}
            )
        else:
            stack.append((slot, True))
            stack.extend((s, False) for s in reply_slots)
    return built[root]
