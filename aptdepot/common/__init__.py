"""Common utilities for aptdepot."""

from .logger import setup_logger, get_logger
from .config import load_config, load_typed_config
from .errors import (
    AptDepotError,
    ParseError,
    DuplicatePackage,
    StorageError,
    GenerationError,
)

__all__ = [
    "AptDepotError",
    "DuplicatePackage",
    "GenerationError",
    "ParseError",
    "StorageError",
    "get_logger",
    "load_config",
    "load_typed_config",
    "setup_logger",
]
