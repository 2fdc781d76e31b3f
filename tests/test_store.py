"""Tests for store configuration and image lookup."""

from pathlib import Path

import pytest

from image_bundle_loader.core.pool import SingleFlightPool
from image_bundle_loader.core.store import ImageStore
from image_bundle_loader.core.types import StoreConfig
from image_bundle_loader.exceptions import ImageNotFoundError
from image_bundle_loader.models import ImageMetadata
from tests.helpers import image_json, make_image_id


def test_config_from_env(monkeypatch, tmp_path):
    """Test reading configuration from the environment."""
    monkeypatch.setenv("IMAGE_STORE_ROOT", str(tmp_path / "root"))
    monkeypatch.setenv("IMAGE_STORE_TMPDIR", str(tmp_path / "tmp"))
    monkeypatch.setenv("IMAGE_STORE_STRICT_ADDRESS", "false")

    config = StoreConfig.from_env()

    assert config.root == tmp_path / "root"
    assert config.tmp_dir == tmp_path / "tmp"
    assert config.strict_address is False
    assert config.graph_root == tmp_path / "root" / "graph"
    assert config.tags_path == tmp_path / "root" / "repositories.json"


def test_config_defaults(monkeypatch):
    """Test defaults when no environment is set."""
    for name in ("IMAGE_STORE_ROOT", "IMAGE_STORE_TMPDIR", "IMAGE_STORE_STRICT_ADDRESS"):
        monkeypatch.delenv(name, raising=False)

    config = StoreConfig.from_env()

    assert config.root == Path("./image-store")
    assert config.tmp_dir is None
    assert config.strict_address is True
    assert config.staging_prefix == "image-load-"


def test_config_rejects_bad_chunk_size(tmp_path):
    """Test chunk size validation."""
    with pytest.raises(ValueError):
        StoreConfig(root=tmp_path, chunk_size=0)


@pytest.mark.asyncio
async def test_lookup_image(store):
    """Test resolving tags, IDs and prefixes."""
    image_id = make_image_id("base")
    await store.graph.register(ImageMetadata.from_json(image_json(image_id)), b"")
    await store.tags.set_load("base", "latest", image_id, True)

    assert store.lookup_image(image_id).id == image_id
    assert store.lookup_image(image_id[:12]).id == image_id
    assert store.lookup_image("base:latest").id == image_id
    assert store.lookup_image("base").id == image_id

    with pytest.raises(ImageNotFoundError):
        store.lookup_image("other:latest")


@pytest.mark.asyncio
async def test_stores_share_pool(store_config, tmp_path):
    """Test that a pool passed in is used as is."""
    pool = SingleFlightPool()

    first = await ImageStore.open(store_config, pool)
    second = await ImageStore.open(StoreConfig(root=tmp_path / "other"), pool)

    assert first.pool is second.pool is pool
