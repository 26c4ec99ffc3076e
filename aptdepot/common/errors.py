"""Error taxonomy for aptdepot.

Every failure surfaced by the ingestion and generation pipeline is one of
the exceptions below, so callers can decide between rejecting, retrying
or treating an upload as already done.
"""

from typing import Optional


class AptDepotError(Exception):
    """Base class for all aptdepot errors."""


class ParseError(AptDepotError):
    """Malformed archive container or control stanza.

    The upload is rejected and nothing is persisted.
    """


class DuplicatePackage(AptDepotError):
    """A package with the same (name, version, architecture) is cataloged."""

    def __init__(
        self,
        name: str,
        version: str,
        architecture: str,
        message: Optional[str] = None,
    ):
        self.name = name
        self.version = version
        self.architecture = architecture
        super().__init__(
            message or f"Package already exists: {name}_{version}_{architecture}"
        )

    @property
    def key(self) -> str:
        """Return the natural key as a single string."""
        return f"{self.name}_{self.version}_{self.architecture}"


class StorageError(AptDepotError):
    """I/O or database failure while storing an artifact or catalog row.

    Nothing is partially applied; callers may retry.
    """


class GenerationError(AptDepotError):
    """Index rebuild failed before anything was published.

    Previously published files are left untouched.
    """
