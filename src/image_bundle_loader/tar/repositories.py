"""Repositories index handling for image bundles."""

import json
from pathlib import Path

import aiofiles

from ..exceptions import ImageDecodeError, StagingError
from ..models import Repositories

DEFAULT_TAG = "latest"


def decode_repositories(content: bytes | str) -> Repositories:
    """Decode a repositories index.

    Args:
        content: Raw file contents, ``{"repo": {"tag": "image-id"}}``

    Returns:
        Mapping of repository name to tag name to image ID

    Raises:
        ImageDecodeError: If the content is not valid JSON of that shape
    """
    try:
        if isinstance(content, bytes):
            content = content.decode("utf-8")
        repos_data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ImageDecodeError(f"Invalid JSON in repositories file: {e}") from e
    except UnicodeDecodeError as e:
        raise ImageDecodeError(f"Cannot decode repositories file: {e}") from e

    if not isinstance(repos_data, dict):
        raise ImageDecodeError("repositories file must be a JSON object")

    for repo_name, tag_dict in repos_data.items():
        if not isinstance(tag_dict, dict):
            raise ImageDecodeError(f"Tags of repository {repo_name} must be an object")
        for tag_name, image_id in tag_dict.items():
            if not isinstance(image_id, str):
                raise ImageDecodeError(
                    f"Image ID of {repo_name}:{tag_name} must be a string"
                )

    return repos_data


async def read_repositories(path: Path) -> Repositories | None:
    """Read the staged repositories index if the bundle carried one.

    Returns:
        Decoded index, or None when the file is absent

    Raises:
        StagingError: If the file exists but cannot be read
        ImageDecodeError: If the file cannot be decoded
    """
    try:
        async with aiofiles.open(path, "rb") as f:
            content = await f.read()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise StagingError(f"Cannot read repositories file: {e}") from e

    return decode_repositories(content)


def iter_repository_tags(repositories: Repositories) -> list[tuple[str, str, str]]:
    """Flatten an index into ``(repo, tag, image_id)`` triples in file order."""
    return [
        (repo_name, tag_name, image_id)
        for repo_name, tag_dict in repositories.items()
        for tag_name, image_id in tag_dict.items()
    ]


def parse_repository_tag(repo_tag: str) -> tuple[str, str]:
    """저장소:태그 문자열을 저장소와 태그 구성요소로 파싱합니다.

    Args:
        repo_tag: 저장소 태그 문자열
            - 예: "nginx:alpine", "localhost:5000/myapp:latest"
            - 포트만 있고 태그가 없는 경우: "localhost:5000/myapp"

    Returns:
        tuple[str, str]: (저장소, 태그) 튜플, 태그가 없으면 "latest"

    Examples:
        repo, tag = parse_repository_tag("nginx:alpine")
        # 결과: ("nginx", "alpine")

        repo, tag = parse_repository_tag("localhost:5000/myapp")
        # 결과: ("localhost:5000/myapp", "latest")
    """
    if ":" in repo_tag:
        # A ':' followed by a '/' belongs to a registry host:port, not a tag
        repository, tag = repo_tag.rsplit(":", 1)
        if tag and "/" not in tag:
            return repository, tag
        if not tag:
            return repository, DEFAULT_TAG

    return repo_tag, DEFAULT_TAG
