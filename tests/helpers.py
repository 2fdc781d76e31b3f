"""Test helper functions for building image bundles."""

import hashlib
import io
import json
import tarfile


def make_image_id(name: str) -> str:
    """Deterministic valid image ID derived from a readable name."""
    return hashlib.sha256(name.encode("utf-8")).hexdigest()


def make_layer(content: bytes = b"hello") -> bytes:
    """Build a tiny layer tar holding one file."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        info = tarfile.TarInfo("etc/hello.txt")
        info.size = len(content)
        tar.addfile(info, fileobj=io.BytesIO(content))
    return buf.getvalue()


def image_json(image_id: str, parent: str = "", **extra) -> bytes:
    data = {"id": image_id, "created": "2015-03-01T10:00:00Z", **extra}
    if parent:
        data["parent"] = parent
    return json.dumps(data).encode("utf-8")


def add_file(tar: tarfile.TarFile, name: str, content: bytes) -> None:
    info = tarfile.TarInfo(name)
    info.size = len(content)
    tar.addfile(info, fileobj=io.BytesIO(content))


def add_dir(tar: tarfile.TarFile, name: str) -> None:
    info = tarfile.TarInfo(name)
    info.type = tarfile.DIRTYPE
    info.mode = 0o755
    tar.addfile(info)


def build_bundle(images, repositories=None, raw_files=None) -> bytes:
    """Create bundle tar bytes.

    Args:
        images: List of (directory name, json bytes, layer bytes)
        repositories: Optional repositories mapping
        raw_files: Optional extra (name, bytes) members
    """
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        for address, metadata, layer in images:
            add_dir(tar, address)
            add_file(tar, f"{address}/VERSION", b"1.0")
            add_file(tar, f"{address}/json", metadata)
            add_file(tar, f"{address}/layer.tar", layer)

        if repositories is not None:
            add_file(tar, "repositories", json.dumps(repositories).encode("utf-8"))

        for name, content in raw_files or []:
            add_file(tar, name, content)

    return buf.getvalue()


def simple_image(name: str, parent: str = ""):
    """(address, json, layer) triple for an image named after name."""
    image_id = make_image_id(name)
    return image_id, image_json(image_id, parent), make_layer(name.encode("utf-8"))
