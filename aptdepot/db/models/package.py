"""Cataloged package model.

One row per unique (name, version, architecture) ingested into the
repository. Rows are written once and never updated.
"""

from sqlalchemy import Column, Index, Integer, LargeBinary, Text, event

from aptdepot.common.errors import StorageError
from aptdepot.db.base import Base


class Package(Base):
    """
    A cataloged binary package.

    Holds the control text extracted from the uploaded artifact, where the
    artifact is stored, and the digests of its bytes. The table has no
    surrogate key: the natural key is the identity.
    """
    __tablename__ = "packages"

    # Natural key
    name = Column(Text, nullable=False)
    version = Column(Text, nullable=False)
    architecture = Column(Text, nullable=False)

    # Control stanza as found in the artifact
    control = Column(Text, nullable=False)

    # Stored artifact
    size = Column(Integer, nullable=False)
    filepath = Column(Text, nullable=False)  # relative to the repository root

    # Raw digests
    md5 = Column(LargeBinary, nullable=False)
    description_md5 = Column(LargeBinary, nullable=False)
    sha1 = Column(LargeBinary, nullable=False)
    sha256 = Column(LargeBinary, nullable=False)

    __table_args__ = (
        Index("avoid_dupes", "version", "name", "architecture", unique=True),
        Index("by_arch", "architecture"),
    )

    __mapper_args__ = {"primary_key": [name, version, architecture]}

    @property
    def key(self) -> str:
        """Return the ``name_version_arch`` key."""
        return f"{self.name}_{self.version}_{self.architecture}"

    def __repr__(self) -> str:
        return f"<Package {self.name}={self.version} ({self.architecture})>"


@event.listens_for(Package, "before_update")
def _reject_update(mapper, connection, target):
    raise StorageError(f"Cataloged packages are immutable: {target.key}")
