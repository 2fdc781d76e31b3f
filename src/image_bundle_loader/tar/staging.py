"""Scoped staging directory for a single bundle load."""

import asyncio
import logging
import shutil
import tempfile
from pathlib import Path

from ..exceptions import StagingError

logger = logging.getLogger(__name__)

REPO_DIR_NAME = "repo"


class StagingArea:
    """Async context manager owning a temporary directory tree.

    The directory is created on enter and removed on every exit, whether
    the body returned normally or raised.
    """

    def __init__(self, prefix: str = "image-load-", tmp_dir: Path | None = None) -> None:
        """Initialize staging.

        Args:
            prefix: Directory name prefix
            tmp_dir: Parent directory (system default if None)
        """
        self.prefix = prefix
        self.tmp_dir = tmp_dir
        self.path: Path | None = None

    @property
    def repo_dir(self) -> Path:
        if self.path is None:
            raise StagingError("Staging area is not open")
        return self.path / REPO_DIR_NAME

    def image_dir(self, address: str) -> Path:
        """Staged directory of the image named address."""
        return self.repo_dir / address

    async def __aenter__(self) -> "StagingArea":
        """Create the staging directory and its repo subdirectory."""
        try:
            if self.tmp_dir is not None:
                self.tmp_dir.mkdir(parents=True, exist_ok=True)
            self.path = Path(tempfile.mkdtemp(prefix=self.prefix, dir=self.tmp_dir))
            self.repo_dir.mkdir()
        except OSError as e:
            await self.close()
            raise StagingError(f"Failed to create staging area: {e}") from e

        logger.debug(f"Created staging area {self.path}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Remove the staging directory."""
        await self.close()

    async def close(self) -> None:
        """Remove the staging tree."""
        if self.path is None:
            return
        path, self.path = self.path, None
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, shutil.rmtree, path, True)
        logger.debug(f"Removed staging area {path}")

    def list_image_dirs(self) -> list[str]:
        """Names of top-level directories in repo; other entries are skipped."""
        try:
            return sorted(entry.name for entry in self.repo_dir.iterdir() if entry.is_dir())
        except OSError as e:
            raise StagingError(f"Failed to list staging area: {e}") from e
