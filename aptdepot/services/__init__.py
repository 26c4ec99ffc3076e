"""Service layer orchestrating the ingestion pipeline."""

from aptdepot.services.ingestion import (
    IngestionService,
    UploadResult,
    UploadStatus,
    handle_upload,
)

__all__ = [
    "IngestionService",
    "UploadResult",
    "UploadStatus",
    "handle_upload",
]
