"""
Integrations with external services beyond the read path.
"""

from .comment_writer import AuthenticationRequiredError, CommentWriteError, CommentWriter

__all__ = ["AuthenticationRequiredError", "CommentWriteError", "CommentWriter"]
