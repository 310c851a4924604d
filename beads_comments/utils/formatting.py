"""
Text and JSON rendering of comment forests.

Reply chains can be as deep as the number of fetched comments, so every function
here walks trees with an explicit stack rather than by recursion.
"""

import json
import sys
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Tuple, Union

from beads_comments.models.dtos import BeadsComment

NO_COMMENTS_MESSAGE = "No comments found."
REPLY_MARKER = "↩ reply · "

# HTML-safe escapes applied on top of json.dumps, so output is byte-identical to
# the other beads comment clients reading and writing this format.
JSON_STRING_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _likes_suffix(likes: int) -> str:
    if likes <= 0:
        return ""
    if likes == 1:
        return " [1 like]"
    return f" [{likes} likes]"


def _format_thread(root: BeadsComment) -> List[str]:
    lines: List[str] = []
    stack = [(root, 0)]
    while stack:
        comment, depth = stack.pop()
        indent = " " * (depth * 2)
        marker = REPLY_MARKER if comment.reply_to else ""
        author = f"{comment.display_name} @{comment.handle}" if comment.display_name else f"@{comment.handle}"

        lines.append(
            f"{indent}[{comment.node_id}] {marker}{author} ({comment.created_at})"
            f"{_likes_suffix(comment.likes)}"
        )
        lines.append(f"{indent}  {comment.text}")

        stack.extend((reply, depth + 1) for reply in reversed(comment.replies))
    return lines


def format_text(comments: List[BeadsComment]) -> str:
    """
    Render threaded comments as human-readable text.

    Each comment is a header line ``[nodeId] <↩ reply · ><DisplayName >@handle (createdAt)``
    with an optional ``[N likes]`` suffix, followed by its text indented two more
    spaces. Replies are indented two spaces per depth level and root threads are
    separated by a blank line.
    """
    if not comments:
        return NO_COMMENTS_MESSAGE + "\n"

    blocks = ["\n".join(_format_thread(comment)) + "\n" for comment in comments]
    return "\n".join(blocks)


def _encode_value(value: Any) -> str:
    encoded = json.dumps(value, ensure_ascii=False)
    if isinstance(value, str):
        for char, escape in JSON_STRING_ESCAPES.items():
            encoded = encoded.replace(char, escape)
    return encoded


def format_json(comments: List[BeadsComment]) -> str:
    """
    Render comments as a pretty-printed JSON array (2-space indent).

    The layout is that of ``json.dumps(..., indent=2)``. ``<``, ``>`` and ``&`` (and
    the line/paragraph separators) inside strings are written as ``\\uXXXX``
    escapes; other non-ASCII text is written as-is.
    """
    if not comments:
        return "[]\n"

    lines = ["["]
    # Entries are comments still to write, or closing lines written verbatim
    stack: List[Union[Tuple[BeadsComment, int, bool], str]] = [
        (comment, 1, i < len(comments) - 1) for i, comment in enumerate(comments)
    ][::-1]
    while stack:
        entry = stack.pop()
        if isinstance(entry, str):
            lines.append(entry)
            continue

        comment, depth, trailing_comma = entry
        indent = "  " * depth
        inner = indent + "  "
        closing = indent + "}" + ("," if trailing_comma else "")

        fields = [
            f"{inner}{_encode_value(key)}: {_encode_value(value)}"
            for key, value in comment.json_fields().items()
        ]
        lines.append(indent + "{")
        lines.extend(field + "," for field in fields[:-1])

        if not comment.replies:
            lines.append(fields[-1])
            lines.append(closing)
            continue

        lines.append(fields[-1] + ",")
        lines.append(f'{inner}"replies": [')
        stack.append(closing)
        stack.append(inner + "]")
        last = len(comment.replies) - 1
        stack.extend(
            (reply, depth + 2, i < last) for i, reply in reversed(list(enumerate(comment.replies)))
        )

    lines.append("]")
    return "\n".join(lines) + "\n"


@contextmanager
def _decoding_depth(levels: int) -> Iterator[None]:
    """Leave room for the json decoder to descend ``levels`` nested containers."""
    previous = sys.getrecursionlimit()
    sys.setrecursionlimit(previous + levels)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


def _comment_from_json(item: Any) -> BeadsComment:
    """Validate one decoded comment tree, building every reply before its parent."""
    nodes: List[Any] = []
    stack = [item]
    while stack:
        node = stack.pop()
        nodes.append(node)
        if isinstance(node, dict) and isinstance(node.get("replies"), list):
            stack.extend(node["replies"])

    built: Dict[int, BeadsComment] = {}
    for node in reversed(nodes):
        if isinstance(node, dict) and isinstance(node.get("replies"), list):
            fields = {key: value for key, value in node.items() if key != "replies"}
            replies = [built.pop(id(reply)) for reply in node["replies"]]
            built[id(node)] = BeadsComment.model_validate(fields).model_copy(
                update={"replies": replies}
            )
        else:
            built[id(node)] = BeadsComment.model_validate(node)
    return built[id(item)]


def parse_json(data: str) -> List[BeadsComment]:
    """Parse the output of ``format_json`` back into comment trees."""
    # Nesting can never exceed the number of opening brackets
    with _decoding_depth(data.count("{") + data.count("[")):
        items = json.loads(data)
    return [_comment_from_json(item) for item in items]
