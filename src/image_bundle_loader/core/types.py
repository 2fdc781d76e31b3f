"""Configuration types for the image store."""

import os
from dataclasses import dataclass
from pathlib import Path


def _env_flag(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class StoreConfig:
    """Image store configuration.

    Args:
        root: Directory holding the graph and the tag index
        tmp_dir: Parent directory for staging areas (system default if None)
        staging_prefix: Name prefix for staging directories
        chunk_size: Read size used when streaming layers into the graph
        strict_address: Reject staged images whose directory name differs
            from the ID embedded in their JSON
    """

    root: Path
    tmp_dir: Path | None = None
    staging_prefix: str = "image-load-"
    chunk_size: int = 1024 * 1024
    strict_address: bool = True

    def __post_init__(self) -> None:
        self.root = Path(self.root)
        if self.tmp_dir is not None:
            self.tmp_dir = Path(self.tmp_dir)
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")

    @property
    def graph_root(self) -> Path:
        return self.root / "graph"

    @property
    def tags_path(self) -> Path:
        return self.root / "repositories.json"

    @classmethod
    def from_env(cls) -> "StoreConfig":
        """Build a configuration from ``IMAGE_STORE_*`` environment variables."""
        tmp_dir = os.getenv("IMAGE_STORE_TMPDIR")
        return cls(
            root=Path(os.getenv("IMAGE_STORE_ROOT", "./image-store")),
            tmp_dir=Path(tmp_dir) if tmp_dir else None,
            strict_address=_env_flag(os.getenv("IMAGE_STORE_STRICT_ADDRESS"), True),
        )
