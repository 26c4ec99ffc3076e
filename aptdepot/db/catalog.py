"""Transactional package catalog.

The catalog is an explicit handle around a SQLAlchemy engine. Uniqueness
of (name, version, architecture) is enforced by the ``avoid_dupes`` index,
which is the only concurrency control ingestion relies on.
"""

from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from aptdepot.common.errors import DuplicatePackage, StorageError
from aptdepot.common.logger import get_logger
from aptdepot.db.base import Base
from aptdepot.db.models import Package

logger = get_logger("catalog")

SQLITE_BUSY_TIMEOUT = 30


def create_catalog_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine suitable for concurrent catalog access.

    SQLite connections get a busy timeout so that racing inserts wait for
    each other and the loser fails on the unique index instead of on a
    locked database.

    Args:
        database_url: SQLAlchemy database URL
        echo: Log emitted SQL

    Returns:
        Engine instance
    """
    if database_url.startswith("sqlite"):
        kwargs = {
            "connect_args": {"timeout": SQLITE_BUSY_TIMEOUT, "check_same_thread": False},
        }
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


class Catalog:
    """Store of cataloged packages."""

    def __init__(self, engine: Engine):
        """Initialize catalog.

        Args:
            engine: Engine bound to the catalog database
        """
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, database_url: str) -> "Catalog":
        """Create a catalog for a database URL."""
        return cls(create_catalog_engine(database_url))

    def create_schema(self) -> None:
        """Create the packages table and its indexes if missing.

        Raises:
            StorageError: If the schema cannot be created
        """
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to create catalog schema: {e}") from e

    def insert(self, package: Package) -> Package:
        """Persist a new package row in its own transaction.

        Args:
            package: Package to insert

        Returns:
            The inserted package

        Raises:
            DuplicatePackage: If the natural key is already cataloged
            StorageError: On any other database failure
        """
        try:
            with self._session_factory.begin() as session:
                session.add(package)
        except IntegrityError as e:
            if self.get(package.name, package.version, package.architecture) is not None:
                logger.info(f"Rejected duplicate package {package.key}")
                raise DuplicatePackage(package.name, package.version, package.architecture) from e
            raise StorageError(f"Catalog insert failed for {package.key}: {e}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Catalog insert failed for {package.key}: {e}") from e

        logger.info(f"Cataloged package {package.key}")
        return package

    def get(self, name: str, version: str, architecture: str) -> Optional[Package]:
        """Return a package by natural key, or None.

        Raises:
            StorageError: If the query fails
        """
        stmt = select(Package).where(
            Package.name == name,
            Package.version == version,
            Package.architecture == architecture,
        )
        try:
            with self._session_factory() as session:
                return session.scalars(stmt).first()
        except SQLAlchemyError as e:
            raise StorageError(f"Catalog query failed: {e}") from e

    def list(self, architecture: str) -> List[Package]:
        """Return all packages of an architecture ordered by name, version.

        Raises:
            StorageError: If the query fails
        """
        return self.snapshot([architecture])[architecture]

    def snapshot(self, architectures: Optional[Sequence[str]] = None) -> Dict[str, List[Package]]:
        """Read packages for several architectures from one consistent state.

        All rows are fetched by a single SELECT inside one read transaction,
        so a concurrent insert is either fully visible or not at all.

        Args:
            architectures: Architectures to read; all cataloged ones if None

        Returns:
            Mapping of architecture to packages ordered by name, version.
            Requested architectures without packages map to an empty list.

        Raises:
            StorageError: If the query fails
        """
        stmt = select(Package).order_by(Package.architecture, Package.name, Package.version)
        if architectures is not None:
            stmt = stmt.where(Package.architecture.in_(list(architectures)))

        try:
            with self._session_factory.begin() as session:
                rows = session.scalars(stmt).all()
        except SQLAlchemyError as e:
            raise StorageError(f"Catalog snapshot failed: {e}") from e

        result: Dict[str, List[Package]] = defaultdict(list)
        for arch in architectures or ():
            result[arch] = []
        for row in rows:
            result[row.architecture].append(row)
        return dict(result)

    def architectures(self) -> List[str]:
        """Return the distinct cataloged architectures, sorted.

        Raises:
            StorageError: If the query fails
        """
        stmt = select(Package.architecture).distinct().order_by(Package.architecture)
        try:
            with self._session_factory() as session:
                return list(session.scalars(stmt).all())
        except SQLAlchemyError as e:
            raise StorageError(f"Catalog query failed: {e}") from e
