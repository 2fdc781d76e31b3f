"""Custom exceptions for the image bundle loader."""


class ImageStoreError(Exception):
    """Base exception for all image store errors."""

    pass


class StagingError(ImageStoreError):
    """Raised when the staging area cannot be created or read."""

    pass


class ExtractionError(ImageStoreError):
    """Raised when the bundle archive cannot be extracted."""

    pass


class ImageDecodeError(ImageStoreError):
    """Raised when image JSON or the repositories index cannot be decoded."""

    pass


class ValidationError(ImageStoreError):
    """Raised when an image identifier or name fails validation."""

    pass


class InvalidImageIDError(ValidationError):
    """Raised when an image ID is not a 64 character hex string."""

    pass


class ImageIDMismatchError(ValidationError):
    """Raised when a staged directory name differs from the embedded image ID."""

    pass


class PoolError(ImageStoreError):
    """Raised when the single-flight pool refuses admission outright."""

    pass


class RegistrationError(ImageStoreError):
    """Raised when the graph cannot register an image."""

    pass


class ImageNotFoundError(ImageStoreError):
    """Raised when an image cannot be resolved."""

    pass


class TagError(ImageStoreError):
    """Raised when a tag cannot be bound."""

    pass
