"""Database models for the aptdepot catalog."""

from aptdepot.db.models.package import Package

__all__ = [
    "Package",
]
