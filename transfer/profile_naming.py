"""Naming and selection of a subject's distinguished (profile) object."""

from datetime import datetime
from typing import Iterable, Optional

from common.constants import (
    PROFILE_PHOTO_DEFAULT_EXTENSION,
    PROFILE_PHOTO_MAX_BYTES,
    PROFILE_PHOTO_PREFIX,
)
from common.types import StoredObjectMetadata, utc_now
from transfer.exceptions import ValidationError


def source_extension(source_name: str) -> str:
    """Extension of ``source_name`` without the dot, or the default when it has none."""
    stem, dot, extension = source_name.rpartition('.')
    if not dot or not stem or not extension:
        return PROFILE_PHOTO_DEFAULT_EXTENSION
    return extension


def profile_object_name(source_name: str, uploaded_at: Optional[datetime] = None) -> str:
    """
    Build ``profile_photo_<uploadTimestampMillis>.<sourceExtension>``.

    Args:
        source_name: Original file name, used for its extension
        uploaded_at: Upload time; defaults to now
    """
    if uploaded_at is None:
        uploaded_at = utc_now()
    millis = int(uploaded_at.timestamp() * 1000)
    return f"{PROFILE_PHOTO_PREFIX}{millis}.{source_extension(source_name)}"


def validate_profile_photo(content_type: str, size: int) -> None:
    """
    Raises:
        ValidationError: If the payload is not an image or exceeds the size limit
    """
    if not content_type.startswith('image/'):
        raise ValidationError("Profile photo must be an image file")
    if size > PROFILE_PHOTO_MAX_BYTES:
        raise ValidationError("Profile photo must be smaller than 5MB")


def pick_current_distinguished(objects: Iterable[StoredObjectMetadata]) -> Optional[StoredObjectMetadata]:
    """
    The newest distinguished object by ``created_at``, if any.

    Several distinguished objects may coexist for one subject; older ones
    are never demoted or deleted, so callers resolve the ambiguity here.
    """
    candidates = [o for o in objects if o.is_distinguished]
    if not candidates:
        return None
    return max(candidates, key=lambda o: o.created_at)
