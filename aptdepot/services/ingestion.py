"""Package ingestion service.

Runs one upload through extraction, digest computation, content-addressed
storage and catalog insertion. Nothing is cataloged unless the artifact
is stored; a duplicate key leaves the stored artifact in place, since its
path depends only on its own bytes.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from aptdepot.common.errors import DuplicatePackage, ParseError
from aptdepot.common.logger import get_logger
from aptdepot.db.catalog import Catalog
from aptdepot.db.models import Package
from aptdepot.formats.deb import DebArchiveExtractor
from aptdepot.repos.checksums import compute_file_sums, description_md5
from aptdepot.repos.pool import ContentStore

logger = get_logger("ingestion")


class UploadStatus(str, Enum):
    """Outcome of an upload that did not fail."""

    CREATED = "created"
    EXISTS = "exists"


@dataclass
class UploadResult:
    """Result reported back to the upload caller."""

    status: UploadStatus
    name: str
    version: str
    architecture: str
    filepath: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.name}_{self.version}_{self.architecture}"


class IngestionService:
    """Ingests uploaded ``.deb`` artifacts into the catalog."""

    def __init__(
        self,
        catalog: Catalog,
        store: ContentStore,
        extractor: Optional[DebArchiveExtractor] = None,
    ):
        self.catalog = catalog
        self.store = store
        self.extractor = extractor or DebArchiveExtractor()

    def ingest(self, data: bytes) -> Package:
        """Ingest one artifact.

        Args:
            data: Complete artifact bytes

        Returns:
            The cataloged package

        Raises:
            ParseError: If the artifact is malformed
            StorageError: If storing the artifact or the row fails
            DuplicatePackage: If the natural key is already cataloged
        """
        artifact = self.extractor.extract(data)
        control = artifact.control

        sums = compute_file_sums(data)
        desc_md5 = description_md5(control.description)

        filepath = self.store.put(data, sums.sha256_hex)

        package = Package(
            name=control.package,
            version=control.version,
            architecture=control.architecture,
            control=artifact.control_text,
            size=len(data),
            filepath=filepath,
            md5=sums.md5,
            description_md5=desc_md5,
            sha1=sums.sha1,
            sha256=sums.sha256,
        )
        return self.catalog.insert(package)

    def ingest_file(self, path: Path) -> Package:
        """Ingest an artifact from disk.

        Raises:
            ParseError: If the artifact is malformed
            StorageError: If storing fails
            DuplicatePackage: If the natural key is already cataloged
            FileNotFoundError: If the file doesn't exist
        """
        path = Path(path)
        logger.info(f"Ingesting {path.name}")
        return self.ingest(path.read_bytes())

    def ingest_directory(self, directory: Path) -> List[UploadResult]:
        """Ingest every ``.deb`` below a directory, skipping existing keys.

        Args:
            directory: Directory searched recursively

        Returns:
            One UploadResult per artifact found, in path order

        Raises:
            NotADirectoryError: If ``directory`` is not a directory
            ParseError: If an artifact is malformed
            StorageError: If storing fails
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise NotADirectoryError(f"Could not list directory {directory}: not a directory")

        results = []
        for path in sorted(directory.rglob("*.deb")):
            if not path.is_file():
                continue
            try:
                results.append(handle_upload(self, path.read_bytes(), ignore_exists=True))
            except ParseError as e:
                raise ParseError(f"{path}: {e}") from e
        return results


def handle_upload(
    service: IngestionService,
    data: bytes,
    ignore_exists: bool = False,
) -> UploadResult:
    """Upload entry point.

    Args:
        service: Ingestion service to run the upload through
        data: Uploaded artifact bytes
        ignore_exists: Report an already-cataloged key as EXISTS instead of
            raising DuplicatePackage

    Returns:
        UploadResult with CREATED or EXISTS status

    Raises:
        DuplicatePackage: If the key exists and ``ignore_exists`` is False
        ParseError: If the artifact is malformed
        StorageError: If storing fails (retryable)
    """
    try:
        package = service.ingest(data)
    except DuplicatePackage as e:
        if not ignore_exists:
            raise
        logger.info(f"Package {e.key} already cataloged")
        return UploadResult(
            status=UploadStatus.EXISTS,
            name=e.name,
            version=e.version,
            architecture=e.architecture,
        )

    return UploadResult(
        status=UploadStatus.CREATED,
        name=package.name,
        version=package.version,
        architecture=package.architecture,
        filepath=package.filepath,
    )
