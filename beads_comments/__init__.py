"""
Beads comments - threaded review comments for beads issues.

This package retrieves comment and like records from the record indexer, resolves
author profiles, and assembles them into sorted reply trees. It can also post new
comments and replies.
"""

__version__ = "0.1.0"
