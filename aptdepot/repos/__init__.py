"""Repository layout: artifact pool, index rendering and publishing."""

from .checksums import FileMeta, FileSums, compute_file_sums, description_md5, hash_stream
from .generator import GenerationResult, IndexGenerator
from .pool import ContentStore
from .publish import atomic_write, publish_directory
from .signing import ReleaseSigner

__all__ = [
    "ContentStore",
    "FileMeta",
    "FileSums",
    "GenerationResult",
    "IndexGenerator",
    "ReleaseSigner",
    "atomic_write",
    "compute_file_sums",
    "description_md5",
    "hash_stream",
    "publish_directory",
]
