"""File ingestion pipeline."""

from .service import (
    FileIngestor,
    IngestionConfig,
    IngestionError,
    UploadTooLargeError,
    spool_upload,
)

__all__ = [
    "FileIngestor",
    "IngestionConfig",
    "IngestionError",
    "UploadTooLargeError",
    "spool_upload",
]
