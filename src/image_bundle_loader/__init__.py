"""Image Bundle Loader - load saved image archives into a content-addressed store."""

__version__ = "0.1.0"

from .core.graph import Graph
from .core.pool import Admitted, AlreadyInFlight, Failed, SingleFlightPool
from .core.store import ImageStore
from .core.tags import TagIndex
from .core.types import StoreConfig
from .exceptions import (
    ExtractionError,
    ImageDecodeError,
    ImageIDMismatchError,
    ImageNotFoundError,
    ImageStoreError,
    InvalidImageIDError,
    PoolError,
    RegistrationError,
    StagingError,
    TagError,
    ValidationError,
)
from .loader import ImageLoader, load_image_bundle
from .models import ImageMetadata, LoadResult

__all__ = [
    "load_image_bundle",
    "ImageLoader",
    "ImageStore",
    "StoreConfig",
    "Graph",
    "TagIndex",
    "SingleFlightPool",
    "Admitted",
    "AlreadyInFlight",
    "Failed",
    "ImageMetadata",
    "LoadResult",
    "ImageStoreError",
    "StagingError",
    "ExtractionError",
    "ImageDecodeError",
    "ValidationError",
    "InvalidImageIDError",
    "ImageIDMismatchError",
    "PoolError",
    "RegistrationError",
    "ImageNotFoundError",
    "TagError",
]
