"""Record collections and URI conventions shared by the read and write paths."""

# ATProto lexicon for beads review comments.
COMMENT_COLLECTION = "org.impactindexer.review.comment"

# ATProto lexicon for beads review likes.
LIKE_COLLECTION = "org.impactindexer.review.like"

# Prefix of comment subject URIs that target beads issues.
BEADS_URI_PREFIX = "beads:"

PROFILE_OPERATION = "app.bsky.actor.getProfile"
CREATE_RECORD_OPERATION = "com.atproto.repo.createRecord"
GET_SESSION_OPERATION = "com.atproto.server.getSession"
