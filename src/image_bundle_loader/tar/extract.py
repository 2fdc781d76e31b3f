"""Rooted bundle extraction honoring exclusion patterns."""

import asyncio
import fnmatch
import glob
import logging
import posixpath
import tarfile
from collections.abc import Iterable
from pathlib import Path
from typing import BinaryIO

from ..exceptions import ExtractionError

logger = logging.getLogger(__name__)


def build_exclude_patterns(image_ids: Iterable[str]) -> list[str]:
    """Patterns matching exactly the top-level directories named by image_ids."""
    return [glob.escape(image_id) for image_id in sorted(image_ids)]


def normalize_member_name(name: str) -> str:
    """Relative, normalized form of a tar member name."""
    name = posixpath.normpath(name.lstrip("/"))
    return "" if name == "." else name


def is_excluded(path: str, patterns: list[str]) -> bool:
    """Check if path or one of its parent directories matches a pattern."""
    if not patterns:
        return False

    path = normalize_member_name(path)
    while path:
        if any(fnmatch.fnmatchcase(path, pattern) for pattern in patterns):
            return True
        path = posixpath.dirname(path)
    return False


def _extract_sync(stream: BinaryIO, destination: Path, patterns: list[str]) -> int:
    extracted = 0
    skipped = 0

    with tarfile.open(fileobj=stream, mode="r|") as tar:
        for member in tar:
            if is_excluded(member.name, patterns):
                skipped += 1
                continue
            # "data" filter rejects absolute, escaping and device entries
            tar.extract(member, destination, filter="data")
            extracted += 1

    logger.debug(f"Extracted {extracted} members into {destination}, skipped {skipped}")
    return extracted


async def extract_archive(
    stream: BinaryIO, destination: Path, exclude_patterns: list[str] | None = None
) -> int:
    """Untar stream into destination without writing outside it.

    Args:
        stream: Uncompressed tar stream, read sequentially
        destination: Directory receiving the archive's top level
        exclude_patterns: Members matching these (or under a matching
            directory) are skipped

    Returns:
        Number of members extracted

    Raises:
        ExtractionError: If the archive is malformed or unsafe, or a write fails
    """
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(
            None, _extract_sync, stream, Path(destination), list(exclude_patterns or [])
        )
    except (tarfile.TarError, OSError) as e:
        raise ExtractionError(f"Failed to extract bundle: {e}") from e
