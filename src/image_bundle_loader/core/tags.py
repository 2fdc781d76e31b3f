"""Persistent repository/tag index."""

import asyncio
import inspect
import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Callable, Optional

import aiofiles

from ..exceptions import ImageDecodeError, ImageNotFoundError, TagError
from ..models import Repositories
from ..tar.repositories import decode_repositories, parse_repository_tag
from ..utils.image_id import short_id
from .graph import Graph

logger = logging.getLogger(__name__)

TAG_NAME_PATTERN = re.compile(r"[\w][\w.-]{0,127}", re.ASCII)

RESERVED_REPOSITORY_NAMES = ("scratch",)

ProgressCallback = Callable[[str], Any]


async def emit_progress(progress: Optional[ProgressCallback], message: str) -> None:
    """Send one line to a sync or async progress callback."""
    if progress is None:
        return
    if inspect.iscoroutinefunction(progress):
        await progress(message)
    else:
        progress(message)


def validate_repository_name(name: str) -> None:
    if not name:
        raise TagError("Repository name can't be empty")
    if name in RESERVED_REPOSITORY_NAMES:
        raise TagError(f"'{name}' is a reserved name")


def validate_tag_name(name: str) -> None:
    if not TAG_NAME_PATTERN.fullmatch(name):
        raise TagError(
            f"Illegal tag name ({name}): only [A-Za-z0-9_.-] are allowed "
            "('.' and '-' are NOT allowed in the initial), "
            "minimum 1, maximum 128 in length"
        )


class TagIndex:
    """Mapping of repository -> tag -> image ID, persisted as JSON."""

    def __init__(self, path: str | Path, graph: Graph) -> None:
        """Initialize an empty index.

        Args:
            path: JSON file the index is saved to
            graph: Graph used to resolve the images being tagged
        """
        self.path = Path(path)
        self.graph = graph
        self.repositories: Repositories = {}
        self._lock = asyncio.Lock()

    @classmethod
    async def open(cls, path: str | Path, graph: Graph) -> "TagIndex":
        """Create an index, restoring saved state if the file exists."""
        index = cls(path, graph)
        await index.reload()
        return index

    async def reload(self) -> None:
        try:
            async with aiofiles.open(self.path, "rb") as f:
                content = await f.read()
        except FileNotFoundError:
            self.repositories = {}
            return

        try:
            self.repositories = decode_repositories(content)
        except ImageDecodeError as e:
            raise TagError(f"Corrupt tag index {self.path}: {e}") from e

    async def save(self) -> None:
        """Write the index atomically."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        async with aiofiles.open(tmp_path, "w") as f:
            await f.write(json.dumps(self.repositories, indent=2, sort_keys=True))
        os.replace(tmp_path, self.path)

    def get(self, repository: str, tag: str) -> str | None:
        """Image ID bound to repository:tag, or None."""
        return self.repositories.get(repository, {}).get(tag)

    def lookup(self, name: str) -> str | None:
        """Resolve a ``repo[:tag]`` reference to an image ID."""
        repository, tag = parse_repository_tag(name)
        return self.get(repository, tag)

    async def set_load(
        self,
        repository: str,
        tag: str,
        image_name: str,
        force: bool,
        progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Bind repository:tag to an image.

        Args:
            repository: Repository name
            tag: Tag name
            image_name: Image ID (or unambiguous prefix) to bind
            force: Replace an existing binding instead of failing
            progress: Optional callback receiving one line per message

        Returns:
            Full image ID the tag now points to

        Raises:
            TagError: If a name is invalid, the image is unknown, or the tag
                is already bound and force is False
        """
        validate_repository_name(repository)
        validate_tag_name(tag)

        try:
            image = self.graph.get(image_name)
        except ImageNotFoundError as e:
            raise TagError(f"No such image: {image_name}") from e

        async with self._lock:
            old = self.get(repository, tag)
            if old is not None:
                if not force:
                    raise TagError(
                        f"Conflict: Tag {tag} is already set to image {short_id(old)}, "
                        "if you want to replace it, please use -f option"
                    )
                if old != image.id:
                    await emit_progress(
                        progress,
                        f"The image {repository}:{tag} already exists, renaming the "
                        f"old one with ID {short_id(old)} to empty string",
                    )

            self.repositories.setdefault(repository, {})[tag] = image.id
            await self.save()

        logger.debug(f"Tagged {image.id} as {repository}:{tag}")
        await emit_progress(progress, f"Loaded image {repository}:{tag} ({short_id(image.id)})")
        return image.id
