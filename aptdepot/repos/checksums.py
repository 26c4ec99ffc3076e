"""Digest computation for artifacts and generated index files.

Computes the MD5, SHA1 and SHA256 digests APT records for every file, and
the Description-md5 value carried by each Packages stanza.
"""

import hashlib
from dataclasses import dataclass
from typing import BinaryIO

from ..common.errors import StorageError
from ..formats.control import normalize_newlines

CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class FileSums:
    """Raw digests of a byte sequence."""

    md5: bytes
    sha1: bytes
    sha256: bytes

    @property
    def md5_hex(self) -> str:
        return self.md5.hex()

    @property
    def sha1_hex(self) -> str:
        return self.sha1.hex()

    @property
    def sha256_hex(self) -> str:
        return self.sha256.hex()


@dataclass(frozen=True)
class FileMeta:
    """A file's repository-relative path, size and digests."""

    path: str
    size: int
    sums: FileSums


def hash_stream(stream: BinaryIO) -> FileSums:
    """Compute all three digests over a binary stream in chunks.

    Args:
        stream: Readable binary file object

    Returns:
        FileSums for the remaining contents of the stream

    Raises:
        StorageError: If reading or hashing fails
    """
    md5 = hashlib.md5()
    sha1 = hashlib.sha1()
    sha256 = hashlib.sha256()

    try:
        for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
            md5.update(chunk)
            sha1.update(chunk)
            sha256.update(chunk)
    except (OSError, ValueError) as e:
        raise StorageError(f"Checksum calculation failed: {e}") from e

    return FileSums(md5=md5.digest(), sha1=sha1.digest(), sha256=sha256.digest())


def compute_file_sums(data: bytes) -> FileSums:
    """Compute all three digests over a complete byte sequence.

    Raises:
        StorageError: If hashing fails
    """
    try:
        return FileSums(
            md5=hashlib.md5(data).digest(),
            sha1=hashlib.sha1(data).digest(),
            sha256=hashlib.sha256(data).digest(),
        )
    except (TypeError, ValueError) as e:
        raise StorageError(f"Checksum calculation failed: {e}") from e


def file_meta(path: str, data: bytes) -> FileMeta:
    """Describe a generated file by path, size and digests."""
    return FileMeta(path=path, size=len(data), sums=compute_file_sums(data))


def description_md5(description: str) -> bytes:
    """Digest of a Description value exactly as rendered in Packages.

    The value is the text after ``Description: `` including continuation
    lines, with newlines normalized to LF and no trailing newline.

    Args:
        description: Description field value

    Returns:
        Raw 16-byte MD5 digest

    Raises:
        StorageError: If the value cannot be encoded
    """
    rendered = normalize_newlines(description).rstrip("\n")
    try:
        return hashlib.md5(rendered.encode("utf-8")).digest()
    except UnicodeEncodeError as e:
        raise StorageError(f"Cannot encode description: {e}") from e
