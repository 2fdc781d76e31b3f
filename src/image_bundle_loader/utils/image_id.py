"""Image identifier validation utilities."""

import re

from ..exceptions import InvalidImageIDError

# Image IDs are content-derived sha256 hex strings
IMAGE_ID_PATTERN = re.compile(r"[a-f0-9]{64}")

SHORT_ID_LENGTH = 12


def is_valid_id(image_id: str) -> bool:
    """Check if image_id is a well formed image identifier."""
    return isinstance(image_id, str) and bool(IMAGE_ID_PATTERN.fullmatch(image_id))


def validate_id(image_id: str) -> None:
    """Validate an image identifier.

    Args:
        image_id: Identifier to check

    Raises:
        InvalidImageIDError: If the identifier is not 64 lowercase hex characters
    """
    if not is_valid_id(image_id):
        raise InvalidImageIDError(f"image ID '{image_id}' is invalid")


def short_id(image_id: str) -> str:
    """Truncate an identifier for display."""
    return image_id[:SHORT_ID_LENGTH]
