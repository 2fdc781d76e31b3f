"""Test configuration and fixtures."""

import pytest
import pytest_asyncio

from image_bundle_loader import ImageStore, StoreConfig


@pytest.fixture
def store_config(tmp_path):
    """Store configuration rooted in a per-test directory."""
    return StoreConfig(root=tmp_path / "store", tmp_dir=tmp_path / "staging")


@pytest_asyncio.fixture
async def store(store_config):
    """Freshly opened, empty image store."""
    return await ImageStore.open(store_config)


@pytest.fixture
def progress_lines():
    """List collecting progress messages."""
    return []


# Pytest configuration
def pytest_configure(config):
    """Configure pytest markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as unit test (default)")
