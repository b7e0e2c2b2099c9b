"""Streaming content hashing."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Union

DEFAULT_CHUNK_SIZE = 64 * 1024

PathLike = Union[str, Path]


class HashComputer:
    """Compute MD5 content digests by reading files in fixed-size chunks.

    MD5 is chosen for throughput over large corpora; the digest is an
    equality proxy, not an integrity guarantee against adversarial input.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be a positive number of bytes.")
        self.chunk_size = chunk_size

    def compute(self, path: PathLike) -> str:
        """Return the uppercase hex digest of the file contents.

        Args:
            path: File to hash.

        Returns:
            str: 32-character uppercase hexadecimal MD5 digest.

        Raises:
            OSError: If the file cannot be opened or read.
        """
        digest = hashlib.md5(usedforsecurity=False)
        with open(path, "rb") as fh:
            for chunk in iter(lambda: fh.read(self.chunk_size), b""):
                digest.update(chunk)
        return digest.hexdigest().upper()


__all__ = ["HashComputer", "DEFAULT_CHUNK_SIZE", "PathLike"]
