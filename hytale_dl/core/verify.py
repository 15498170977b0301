from __future__ import annotations
import hashlib
import logging
from pathlib import Path
from typing import Union

from .errors import ChecksumMismatchError, VerificationError

logger = logging.getLogger(__name__)

BLOCK_SIZE = 1024 * 1024


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(BLOCK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def verify_sha256(path: Union[str, Path], expected: str) -> None:
    """
    Raise ChecksumMismatchError unless path hashes to expected (hex, any case).
    The file is never touched; deleting a bad download is the caller's call.
    """
    path = Path(path)
    try:
        computed = sha256_file(path)
    except OSError as e:
        raise VerificationError(f"could not compute hash of {path}: {e}") from e
    if computed != expected.strip().lower():
        raise ChecksumMismatchError(path, expected, computed)
    logger.debug("Checksum OK for %s", path)
