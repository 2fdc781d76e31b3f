"""Data models for images, load results and the repositories index."""

import json
from dataclasses import dataclass, field
from typing import Any

from .exceptions import ImageDecodeError

# repo name -> tag name -> image ID
Repositories = dict[str, dict[str, str]]


def _lookup(data: dict[str, Any], key: str) -> Any:
    """Case-insensitive key lookup, exact match first."""
    if key in data:
        return data[key]
    lowered = key.lower()
    for name, value in data.items():
        if name.lower() == lowered:
            return value
    return None


@dataclass
class ImageMetadata:
    """Image metadata record decoded from an image ``json`` file.

    Only ``id`` and ``parent`` drive the loader; everything else is kept in
    ``raw`` and handed to the graph untouched.
    """

    id: str
    parent: str = ""
    created: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: bytes | str) -> "ImageMetadata":
        """Parse image JSON.

        Args:
            data: Raw contents of an image ``json`` file

        Returns:
            ImageMetadata object

        Raises:
            ImageDecodeError: If the JSON is malformed or lacks a string id
        """
        try:
            if isinstance(data, bytes):
                data = data.decode("utf-8")
            decoded = json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ImageDecodeError(f"Invalid image JSON: {e}") from e

        if not isinstance(decoded, dict):
            raise ImageDecodeError("Image JSON must be an object")

        image_id = _lookup(decoded, "id")
        if not isinstance(image_id, str):
            raise ImageDecodeError("Image JSON has no id")

        parent = _lookup(decoded, "parent") or ""
        if not isinstance(parent, str):
            raise ImageDecodeError(f"Image {image_id} has a non-string parent")

        created = _lookup(decoded, "created")

        return cls(
            id=image_id,
            parent=parent,
            created=created if isinstance(created, str) else None,
            raw=decoded,
        )

    def to_json(self) -> bytes:
        """Serialize back to image JSON with canonical ``id``/``parent`` keys."""
        replaced = ("id", "parent", "created") if self.created is not None else ("id", "parent")
        data = {
            key: value
            for key, value in self.raw.items()
            if key.lower() not in replaced
        }
        data["id"] = self.id
        if self.parent:
            data["parent"] = self.parent
        if self.created is not None:
            data["created"] = self.created
        return json.dumps(data, sort_keys=True).encode("utf-8")


@dataclass
class LoadResult:
    """Summary of a single bundle load."""

    registered: list[str] = field(default_factory=list)
    tagged: list[str] = field(default_factory=list)
