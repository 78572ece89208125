"""
Argument validation for registry operations.

Each validator returns the ErrorKind of the first failed rule, or None.
"""

from story_registry.core.models import (
    CONTENT_HASH_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_MEDIA_LINK_LENGTH,
    MAX_TITLE_LENGTH,
    ErrorKind,
)


def validate_content_hash(content_hash: bytes) -> ErrorKind | None:
    if not isinstance(content_hash, (bytes, bytearray)):
        return ErrorKind.INVALID_HASH
    if len(content_hash) != CONTENT_HASH_LENGTH:
        return ErrorKind.INVALID_HASH
    return None


def validate_metadata(
    title: str, description: str, media_link: str | None
) -> ErrorKind | None:
    """Check title, description and media link, in that order."""
    if not title or len(title) > MAX_TITLE_LENGTH:
        return ErrorKind.INVALID_TITLE
    if len(description) > MAX_DESCRIPTION_LENGTH:
        return ErrorKind.INVALID_DESCRIPTION
    if media_link is not None and len(media_link) > MAX_MEDIA_LINK_LENGTH:
        return ErrorKind.INVALID_MEDIA_LINK
    return None


def validate_provenance_id(provenance_id: int | None) -> ErrorKind | None:
    if provenance_id is not None and provenance_id <= 0:
        return ErrorKind.INVALID_PROVENANCE_ID
    return None
