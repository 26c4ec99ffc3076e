"""Package catalog persistence."""

from aptdepot.db.base import Base
from aptdepot.db.catalog import Catalog, create_catalog_engine
from aptdepot.db.models import Package

__all__ = [
    "Base",
    "Catalog",
    "Package",
    "create_catalog_engine",
]
