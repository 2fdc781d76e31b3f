"""Image store facade combining the graph, tag index and single-flight pool."""

import logging
from typing import BinaryIO, Optional

from ..exceptions import ImageNotFoundError
from ..models import ImageMetadata, LoadResult
from .graph import Graph
from .pool import SingleFlightPool
from .tags import ProgressCallback, TagIndex
from .types import StoreConfig

logger = logging.getLogger(__name__)


class ImageStore:
    """Local content-addressed image store."""

    def __init__(
        self,
        config: StoreConfig,
        graph: Graph,
        tags: TagIndex,
        pool: Optional[SingleFlightPool] = None,
    ) -> None:
        self.config = config
        self.graph = graph
        self.tags = tags
        self.pool = pool if pool is not None else SingleFlightPool()

    @classmethod
    async def open(
        cls, config: StoreConfig, pool: Optional[SingleFlightPool] = None
    ) -> "ImageStore":
        """Open (creating if needed) the store described by config.

        Args:
            config: Store configuration
            pool: Pool to share with other stores or pullers

        Returns:
            ImageStore object
        """
        graph = Graph(config.graph_root, chunk_size=config.chunk_size)
        tags = await TagIndex.open(config.tags_path, graph)
        logger.debug(f"Opened image store at {config.root}")
        return cls(config, graph, tags, pool)

    def lookup_image(self, name: str) -> ImageMetadata:
        """Resolve a ``repo:tag`` reference, image ID or ID prefix.

        Raises:
            ImageNotFoundError: If nothing matches
        """
        image_id = self.tags.lookup(name)
        if image_id is not None:
            return self.graph.get(image_id)
        try:
            return self.graph.get(name)
        except ImageNotFoundError:
            raise ImageNotFoundError(f"No such image: {name}") from None

    async def load(
        self, in_stream: BinaryIO, progress: Optional[ProgressCallback] = None
    ) -> LoadResult:
        """Load an image bundle archive into the store."""
        from ..loader import ImageLoader

        return await ImageLoader(self).load(in_stream, progress)
