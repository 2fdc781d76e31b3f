"""Content-addressed image graph backed by a directory tree."""

import logging
import shutil
import uuid
from pathlib import Path
from typing import Any

import aiofiles

from ..exceptions import (
    ImageDecodeError,
    ImageNotFoundError,
    RegistrationError,
    ValidationError,
)
from ..models import ImageMetadata
from ..utils.digest import format_digest, new_hasher, validate_digest
from ..utils.image_id import is_valid_id, validate_id

logger = logging.getLogger(__name__)

TMP_DIR_NAME = "_tmp"


class Graph:
    """Persistent mapping from image ID to (metadata, layer).

    Layout::

        <root>/<id>/json
        <root>/<id>/layer.tar
        <root>/<id>/checksum
        <root>/_tmp/          in-progress registrations

    An image becomes visible only when its directory is renamed into place,
    so ``exists`` never observes a half written image.
    """

    def __init__(self, root: str | Path, chunk_size: int = 1024 * 1024) -> None:
        """Initialize the graph.

        Args:
            root: Graph directory, created if missing
            chunk_size: Read size used when streaming layers
        """
        self.root = Path(root)
        self.chunk_size = chunk_size
        self.root.mkdir(parents=True, exist_ok=True)
        (self.root / TMP_DIR_NAME).mkdir(exist_ok=True)

    def _image_dir(self, image_id: str) -> Path:
        return self.root / image_id

    def exists(self, image_id: str) -> bool:
        """Check if image_id is registered."""
        if not is_valid_id(image_id):
            return False
        return (self._image_dir(image_id) / "json").is_file()

    def ids(self) -> list[str]:
        """Sorted IDs of every registered image."""
        return sorted(
            entry.name
            for entry in self.root.iterdir()
            if entry.is_dir() and self.exists(entry.name)
        )

    def map(self) -> dict[str, ImageMetadata]:
        """Load every registered image.

        Returns:
            Dictionary of image ID to metadata
        """
        return {image_id: self._load(image_id) for image_id in self.ids()}

    def get(self, name: str) -> ImageMetadata:
        """Look up an image by full ID or unambiguous ID prefix.

        Raises:
            ImageNotFoundError: If nothing or more than one image matches
        """
        if self.exists(name):
            return self._load(name)

        if not name:
            raise ImageNotFoundError("No such image: empty name")

        matches = [image_id for image_id in self.ids() if image_id.startswith(name)]
        if not matches:
            raise ImageNotFoundError(f"No such image: {name}")
        if len(matches) > 1:
            raise ImageNotFoundError(f"Ambiguous image ID prefix: {name}")
        return self._load(matches[0])

    def checksum(self, image_id: str) -> str:
        """Get the stored layer digest of a registered image."""
        if not self.exists(image_id):
            raise ImageNotFoundError(f"No such image: {image_id}")

        digest = (self._image_dir(image_id) / "checksum").read_text().strip()
        if not validate_digest(digest):
            raise ImageDecodeError(f"Corrupt checksum for image {image_id}: {digest}")
        return digest

    def _load(self, image_id: str) -> ImageMetadata:
        data = (self._image_dir(image_id) / "json").read_bytes()
        return ImageMetadata.from_json(data)

    async def register(self, metadata: ImageMetadata, layer: Any) -> str:
        """Persist an image and its layer atomically.

        Args:
            metadata: Image metadata
            layer: Layer data as bytes or an async file object with ``read``

        Returns:
            Layer digest

        Raises:
            RegistrationError: If the image exists, its parent is missing,
                or the layer cannot be written
        """
        try:
            validate_id(metadata.id)
        except ValidationError as e:
            raise RegistrationError(str(e)) from e

        if self.exists(metadata.id):
            raise RegistrationError(f"Image {metadata.id} already exists")

        if metadata.parent and not self.exists(metadata.parent):
            raise RegistrationError(
                f"Parent {metadata.parent} of image {metadata.id} is not registered"
            )

        tmp_dir = self.root / TMP_DIR_NAME / f"{metadata.id}-{uuid.uuid4().hex[:8]}"
        try:
            tmp_dir.mkdir(parents=True)
            digest = await self._write_layer(tmp_dir / "layer.tar", layer)

            async with aiofiles.open(tmp_dir / "json", "wb") as f:
                await f.write(metadata.to_json())
            async with aiofiles.open(tmp_dir / "checksum", "w") as f:
                await f.write(digest)

            tmp_dir.rename(self._image_dir(metadata.id))
        except OSError as e:
            raise RegistrationError(f"Failed to register image {metadata.id}: {e}") from e
        finally:
            if tmp_dir.exists():
                shutil.rmtree(tmp_dir, ignore_errors=True)

        logger.debug(f"Registered image {metadata.id} (layer {digest})")
        return digest

    async def _write_layer(self, path: Path, layer: Any) -> str:
        hasher = new_hasher()

        async with aiofiles.open(path, "wb") as out:
            if isinstance(layer, (bytes, bytearray)):
                hasher.update(layer)
                await out.write(layer)
            else:
                while True:
                    chunk = await layer.read(self.chunk_size)
                    if not chunk:
                        break
                    hasher.update(chunk)
                    await out.write(chunk)

        return format_digest(hasher)
