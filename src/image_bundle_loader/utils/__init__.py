"""Utility functions for the image bundle loader."""

from .digest import calculate_digest, validate_digest
from .image_id import is_valid_id, short_id, validate_id

__all__ = [
    "calculate_digest",
    "validate_digest",
    "is_valid_id",
    "short_id",
    "validate_id",
]
