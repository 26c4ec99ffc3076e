"""Content-addressed artifact pool.

Artifacts are stored under ``pool/<component>/<sha256[:2]>/<sha256>.deb``
relative to the repository root, so storing identical bytes twice is a
no-op and concurrent uploads of the same bytes converge on one file.
"""

import time
from pathlib import Path
from typing import Optional

from ..common.errors import StorageError
from ..common.logger import get_logger
from .publish import atomic_write

logger = get_logger("pool")


class ContentStore:
    """Stores artifact bytes at paths derived from their SHA256 digest."""

    def __init__(
        self,
        repo_root: Path,
        component: str = "main",
        max_retries: int = 4,
        retry_delay: float = 0.5,
    ):
        """Initialize the content store.

        Args:
            repo_root: Repository root directory
            component: Archive component the pool directory is named after
            max_retries: Maximum write attempts
            retry_delay: Initial delay between attempts (doubles each retry)
        """
        self.repo_root = Path(repo_root)
        self.component = component
        self.max_retries = max(max_retries, 1)
        self.retry_delay = retry_delay

    def relative_path(self, sha256_hex: str) -> str:
        """Return the repository-relative path for a digest."""
        if len(sha256_hex) != 64:
            raise ValueError(f"Not a SHA256 hex digest: {sha256_hex!r}")
        return f"pool/{self.component}/{sha256_hex[:2]}/{sha256_hex}.deb"

    def absolute_path(self, relative_path: str) -> Path:
        """Resolve a repository-relative path below the repository root."""
        return self.repo_root / relative_path

    def exists(self, relative_path: str, size: Optional[int] = None) -> bool:
        """Check that a stored artifact exists, optionally with a given size."""
        path = self.absolute_path(relative_path)
        if not path.is_file():
            return False
        return size is None or path.stat().st_size == size

    def put(self, data: bytes, sha256_hex: str) -> str:
        """Store artifact bytes at their content address.

        Args:
            data: Artifact bytes
            sha256_hex: Hex SHA256 digest of ``data``

        Returns:
            Repository-relative path of the stored artifact

        Raises:
            StorageError: If the write fails after all retries
        """
        relative_path = self.relative_path(sha256_hex)
        target = self.absolute_path(relative_path)

        delay = self.retry_delay
        last_error: Optional[OSError] = None

        for attempt in range(self.max_retries):
            try:
                if self.exists(relative_path, size=len(data)):
                    logger.debug(f"Artifact already stored: {relative_path}")
                    return relative_path

                with atomic_write(target) as f:
                    f.write(data)

                logger.info(f"Stored artifact {relative_path} ({len(data)} bytes)")
                return relative_path

            except OSError as e:
                last_error = e
                logger.warning(
                    f"Artifact write failed (attempt {attempt + 1}/{self.max_retries}): {e}"
                )

            # Exponential backoff
            if attempt < self.max_retries - 1:
                time.sleep(delay)
                delay *= 2

        raise StorageError(
            f"Failed to store artifact after {self.max_retries} attempts: {last_error}"
        )
