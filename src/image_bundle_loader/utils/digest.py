"""Layer digest calculation and validation utilities."""

import hashlib
import re

# Regex pattern for valid digest format (algorithm:hex)
DIGEST_PATTERN = re.compile(r"^[a-z0-9]+:[a-f0-9]+$")

SUPPORTED_ALGORITHMS = ["sha256", "sha512"]


def new_hasher(algorithm: str = "sha256") -> "hashlib._Hash":
    """Create an incremental hasher for streamed layer data.

    Args:
        algorithm: Hash algorithm (default: sha256)

    Returns:
        Hash object accepting ``update`` calls

    Raises:
        ValueError: If algorithm is not supported
    """
    if algorithm not in SUPPORTED_ALGORITHMS:
        raise ValueError(f"Unsupported algorithm: {algorithm}")
    return hashlib.new(algorithm)


def format_digest(hasher: "hashlib._Hash") -> str:
    """Render a finished hasher as ``algorithm:hex``."""
    return f"{hasher.name}:{hasher.hexdigest()}"


def calculate_digest(data: bytes | bytearray, algorithm: str = "sha256") -> str:
    """Calculate digest of data.

    Args:
        data: Data to hash
        algorithm: Hash algorithm (default: sha256)

    Returns:
        Digest string in format "algorithm:hex"

    Raises:
        ValueError: If algorithm is not supported
        ValueError: If data is not bytes-like
    """
    if not isinstance(data, (bytes, bytearray)):
        raise ValueError("Data must be bytes or bytearray")

    hasher = new_hasher(algorithm)
    hasher.update(data)
    return format_digest(hasher)


def validate_digest(digest: str) -> bool:
    """Validate digest format.

    Args:
        digest: Digest string to validate

    Returns:
        True if valid digest format
    """
    if not isinstance(digest, str):
        return False

    if not DIGEST_PATTERN.match(digest):
        return False

    algorithm, _ = digest.split(":", 1)
    return algorithm in SUPPORTED_ALGORITHMS
