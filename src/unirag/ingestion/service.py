"""File ingestion service for UniRAG."""

from __future__ import annotations

import random
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable

from unirag.metrics.observability import PipelineMetrics, get_logger
from unirag.models import IngestionResult, StoredFile, classify_media_type
from unirag.storage.store import FileStore


class IngestionError(RuntimeError):
    """Raised when an upload cannot be read or stored."""


class UploadTooLargeError(IngestionError):
    """Raised when an upload exceeds the configured size limit."""


@dataclass(frozen=True)
class IngestionConfig:
    """Configuration for file ingestion."""

    default_embedding_set: str = "multimodal-set-1"
    # Synthetic chunk count reported back to the UI, upper bound exclusive.
    chunk_count_range: tuple[int, int] = (100, 600)


async def spool_upload(
    read: Callable[[int], Awaitable[bytes]],
    *,
    directory: Path,
    max_bytes: int,
    read_size: int = 1024 * 1024,
) -> Path:
    """Copy an upload stream into a temporary file under ``directory``.

    The partial file is removed when the copy fails or exceeds ``max_bytes``.
    """

    bytes_written = 0
    try:
        with tempfile.NamedTemporaryFile(dir=directory, prefix="upload-", delete=False) as out_f:
            destination = Path(out_f.name)
            try:
                while True:
                    chunk = await read(read_size)
                    if not chunk:
                        break
                    bytes_written += len(chunk)
                    if bytes_written > max_bytes:
                        raise UploadTooLargeError(f"File too large (>{max_bytes // (1024 * 1024)}MB)")
                    out_f.write(chunk)
            except BaseException:
                out_f.close()
                destination.unlink(missing_ok=True)
                raise
    except OSError as exc:
        raise IngestionError(f"Failed to write upload to {directory}: {exc}") from exc
    return destination


class FileIngestor:
    """Reads a spooled upload into memory and hands it to the file store."""

    def __init__(
        self,
        store: FileStore,
        config: IngestionConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._store = store
        self._config = config or IngestionConfig()
        self._rng = rng or random.Random()
        self._logger = get_logger("ingestion")

    def ingest(
        self,
        path: Path,
        *,
        media_type: str | None,
        filename: str | None = None,
        embedding_name: str | None = None,
    ) -> IngestionResult:
        """Store the file at ``path`` and delete it, whether or not reading succeeds."""

        category = classify_media_type(media_type)
        start = time.perf_counter()
        try:
            content = path.read_bytes()
        except OSError as exc:
            raise IngestionError(f"Failed to read {filename or path.name}: {exc}") from exc
        finally:
            path.unlink(missing_ok=True)

        self._store.ingest(
            StoredFile(
                media_type=media_type or "application/octet-stream",
                content=content,
                category=category,
                filename=filename,
            )
        )
        duration = time.perf_counter() - start
        PipelineMetrics.observe_ingestion(duration, len(content))
        self._logger.info(
            "ingestion.stored",
            filename=filename,
            media_type=media_type,
            category=category.value,
            size_bytes=len(content),
            duration_seconds=duration,
        )
        return IngestionResult(
            embedding_set=(embedding_name or "").strip() or self._config.default_embedding_set,
            chunks=self._rng.randrange(*self._config.chunk_count_range),
            category=category,
            filename=filename,
        )
