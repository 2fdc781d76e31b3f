"""Image bundle loader: ingest a saved image archive into the local store."""

import logging
from pathlib import Path
from typing import BinaryIO, Optional

import aiofiles

from .core.pool import AlreadyInFlight, Failed
from .core.store import ImageStore
from .core.tags import ProgressCallback
from .core.types import StoreConfig
from .exceptions import (
    ImageDecodeError,
    ImageIDMismatchError,
    ImageNotFoundError,
    StagingError,
)
from .models import ImageMetadata, LoadResult
from .tar.extract import build_exclude_patterns, extract_archive
from .tar.repositories import iter_repository_tags, read_repositories
from .tar.staging import StagingArea
from .utils.image_id import validate_id

logger = logging.getLogger(__name__)

POOL_KIND = "pull"


def layer_key(image_id: str) -> str:
    """Single-flight key shared by every loader and puller of a layer."""
    return f"layer:{image_id}"


class ImageLoader:
    """Loads image bundles into an ImageStore.

    A bundle is an uncompressed tar whose top level holds one directory per
    image (``<id>/json`` and ``<id>/layer.tar``) and an optional
    ``repositories`` index. Images already in the graph are excluded from
    extraction, the rest are registered parent first, and tags are bound
    last so a tag never names an unregistered image.
    """

    def __init__(self, store: ImageStore) -> None:
        self.store = store
        self.config = store.config

    async def load(
        self, in_stream: BinaryIO, progress: Optional[ProgressCallback] = None
    ) -> LoadResult:
        """Load every image and tag of a bundle.

        Args:
            in_stream: Uncompressed tar stream of the bundle
            progress: Optional callback receiving tag binding messages

        Returns:
            LoadResult listing newly registered images and bound tags

        Raises:
            ImageStoreError: The first error encountered; nothing after it
                is processed
        """
        result = LoadResult()

        async with StagingArea(self.config.staging_prefix, self.config.tmp_dir) as staging:
            excludes = build_exclude_patterns(self.store.graph.ids())
            await extract_archive(in_stream, staging.repo_dir, excludes)

            for address in staging.list_image_dirs():
                await self._recursive_load(address, staging, result, set())

            repositories = await read_repositories(staging.repo_dir / "repositories")
            if repositories is None:
                logger.info(f"Loaded {len(result.registered)} images, no repositories index")
                return result

            for repository, tag, image_id in iter_repository_tags(repositories):
                await self.store.tags.set_load(repository, tag, image_id, True, progress)
                result.tagged.append(f"{repository}:{tag}")

        logger.info(
            f"Loaded {len(result.registered)} images and {len(result.tagged)} tags"
        )
        return result

    async def _recursive_load(
        self, address: str, staging: StagingArea, result: LoadResult, loading: set[str]
    ) -> None:
        try:
            self.store.lookup_image(address)
        except ImageNotFoundError:
            await self._load_image(address, staging, result, loading)

        logger.debug(f"Completed processing {address}")

    async def _load_image(
        self, address: str, staging: StagingArea, result: LoadResult, loading: set[str]
    ) -> None:
        logger.debug(f"Loading {address}")
        image_dir = staging.image_dir(address)

        try:
            async with aiofiles.open(image_dir / "json", "rb") as f:
                image_json = await f.read()
        except OSError as e:
            logger.debug(f"Error reading json of {address}: {e}")
            raise StagingError(f"Failed to read json of {address}: {e}") from e

        try:
            layer = await aiofiles.open(image_dir / "layer.tar", "rb")
        except OSError as e:
            logger.debug(f"Error reading embedded tar of {address}: {e}")
            raise StagingError(f"Failed to open layer of {address}: {e}") from e

        # The layer must stay open until register has consumed it
        try:
            await self._register(address, image_json, layer, staging, result, loading)
        finally:
            await layer.close()

    async def _register(
        self,
        address: str,
        image_json: bytes,
        layer,
        staging: StagingArea,
        result: LoadResult,
        loading: set[str],
    ) -> None:
        metadata = ImageMetadata.from_json(image_json)
        validate_id(metadata.id)
        if self.config.strict_address and metadata.id != address:
            raise ImageIDMismatchError(f"Staged image {address} declares ID {metadata.id}")

        # this load already holds the key for every image in loading
        if metadata.id in loading:
            raise ImageDecodeError(f"Image {metadata.id} is its own ancestor")

        # ensure no two loads or pulls of the same layer run at the same time
        key = layer_key(metadata.id)
        admission = self.store.pool.add(POOL_KIND, key)
        if isinstance(admission, AlreadyInFlight):
            logger.debug(
                f"Image (id: {metadata.id}) load is already running, "
                f"waiting: {admission.message}"
            )
            await admission.wait()
            return
        if isinstance(admission, Failed):
            raise admission.error

        loading.add(metadata.id)
        try:
            # another worker may have finished this image since the lookup
            if self.store.graph.exists(metadata.id):
                return

            if metadata.parent and not self.store.graph.exists(metadata.parent):
                await self._recursive_load(metadata.parent, staging, result, loading)

            await self.store.graph.register(metadata, layer)
            result.registered.append(metadata.id)
        finally:
            loading.discard(metadata.id)
            self.store.pool.remove(POOL_KIND, key)


async def load_image_bundle(
    bundle: str | Path | BinaryIO,
    store_root: str | Path,
    progress: Optional[ProgressCallback] = None,
) -> LoadResult:
    """이미지 번들 tar 파일을 로컬 이미지 저장소로 로드합니다.

    이미 저장소에 있는 이미지는 건너뛰고, 부모 이미지를 먼저 등록한 뒤
    repositories 인덱스의 태그를 마지막에 연결합니다.

    Args:
        bundle: 번들 tar 파일 경로 또는 바이너리 파일 객체
            - 경로: "ubuntu.tar", "./exports/app.tar"
            - 파일 객체: sys.stdin.buffer, io.BytesIO(...)
        store_root: 이미지 저장소 루트 디렉토리 (없으면 생성)
        progress: 태그 연결 메시지를 한 줄씩 받는 콜백 (선택사항)

    Returns:
        LoadResult: 새로 등록된 이미지 ID와 연결된 태그 목록

    Raises:
        ImageStoreError: 로드 중 처음 발생한 오류

    Examples:
        result = await load_image_bundle("ubuntu.tar", "/var/lib/images", print)
        print(f"등록된 이미지: {len(result.registered)}개")
    """
    store = await ImageStore.open(StoreConfig(root=Path(store_root)))

    if isinstance(bundle, (str, Path)):
        with open(bundle, "rb") as f:
            return await store.load(f, progress)
    return await store.load(bundle, progress)
