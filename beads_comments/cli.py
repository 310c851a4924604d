"""Command-line interface for beads comments."""

import asyncio
import logging
import sys
from typing import List, Optional

import typer
from typing_extensions import Annotated

from beads_comments.config.settings import Settings, get_settings
from beads_comments.core.indexer_client import IndexerError
from beads_comments.core.pipeline import CommentPipeline
from beads_comments.integrations.comment_writer import CommentWriteError, CommentWriter
from beads_comments.models.dtos import CreateCommentInput, CreateCommentOutput, FetchOptions
from beads_comments.utils.formatting import format_json, format_text
from beads_comments.utils.logging_utils import setup_logging

app = typer.Typer(help="View and post review comments on beads issues")

logger = logging.getLogger(__name__)

GLOB_CHARS = set("*?[")


def build_fetch_options(item: Optional[str], limit: Optional[int], default_limit: int) -> FetchOptions:
    """
    Translate CLI arguments into a ``FetchOptions`` selection.

    Without an item every issue is listed, capped at ``default_limit`` roots. An item
    containing glob characters selects by pattern, anything else by exact ID; both
    are uncapped unless ``limit`` is given.
    """
    if not item:
        return FetchOptions(limit=default_limit if limit is None else limit)
    if GLOB_CHARS & set(item):
        return FetchOptions(pattern=item, limit=limit or 0)
    return FetchOptions(beads_id=item, limit=limit or 0)


async def post_comment(settings: Settings, comment: CreateCommentInput) -> CreateCommentOutput:
    async with CommentWriter(
        settings.pds_url,
        settings.access_jwt,
        did=settings.did,
        timeout=settings.request_timeout,
    ) as writer:
        return await writer.create_comment(comment)


@app.command()
def get(
    item: Annotated[
        Optional[str],
        typer.Argument(help="Beads issue ID or glob pattern (omit to list recent comments on all issues)"),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-n", min=0, help="Maximum number of root comments (0 = unlimited)"),
    ] = None,
    indexer_url: Annotated[
        Optional[str], typer.Option("--indexer-url", help="Record indexer GraphQL URL")
    ] = None,
    profile_api_url: Annotated[
        Optional[str], typer.Option("--profile-api-url", help="Profile API URL")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Get threaded comments for a beads issue."""
    setup_logging(log_level="DEBUG" if verbose else None)
    settings = get_settings()

    options = build_fetch_options(item, limit, settings.default_list_limit)
    pipeline = CommentPipeline.from_settings(settings, indexer_url, profile_api_url)
    logger.debug(f"Fetching comments from {pipeline.indexer_url} with {options!r}")

    try:
        comments = asyncio.run(pipeline.run(options))
    except IndexerError as e:
        typer.echo(f"Error: failed to fetch comments: {e}", err=True)
        sys.exit(1)

    typer.echo(format_json(comments) if json_output else format_text(comments), nl=False)


@app.command()
def add(
    item: Annotated[str, typer.Argument(help="Beads issue ID to comment on")],
    text: Annotated[List[str], typer.Argument(help="Comment text")],
    reply_to: Annotated[
        Optional[str], typer.Option("--reply-to", help="URI of the parent comment to reply to")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
) -> None:
    """Add a comment (or a reply) to a beads issue."""
    setup_logging(log_level="DEBUG" if verbose else None)
    settings = get_settings()

    comment = CreateCommentInput(beads_id=item, text=" ".join(text), reply_to=reply_to or "")
    try:
        output = asyncio.run(post_comment(settings, comment))
    except CommentWriteError as e:
        typer.echo(f"Error: failed to create comment: {e}", err=True)
        sys.exit(1)

    typer.echo(f"Comment posted: {output.uri}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
