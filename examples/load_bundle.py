"""Example usage of the image bundle loader."""

import asyncio
import logging
import sys

# Add parent directory to path
sys.path.insert(0, "src")

from image_bundle_loader import ImageStore, ImageStoreError, StoreConfig

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def main(bundle_paths: list[str]) -> int:
    """Load one or more bundles concurrently into a shared store."""
    config = StoreConfig.from_env()
    store = await ImageStore.open(config)
    logger.info(f"Image store at {config.root}")

    async def load_one(path: str):
        with open(path, "rb") as f:
            return await store.load(f, progress=print)

    try:
        # Overlapping bundles register each shared layer only once
        results = await asyncio.gather(*(load_one(path) for path in bundle_paths))
    except ImageStoreError as e:
        logger.error(f"Load failed: {e}")
        return 1

    for path, result in zip(bundle_paths, results, strict=True):
        logger.info(f"{path}: {len(result.registered)} new images, tags {result.tagged}")

    logger.info(f"Store now holds {len(store.graph.ids())} images")
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(f"usage: {sys.argv[0]} BUNDLE.tar [BUNDLE.tar ...]")
        sys.exit(2)

    sys.exit(asyncio.run(main(sys.argv[1:])))
