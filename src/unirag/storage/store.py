"""Single-slot file store."""

from __future__ import annotations

import threading
from typing import Protocol

from unirag.models import StoredFile


class FileStore(Protocol):
    """Protocol for holding the file that queries are answered against."""

    def ingest(self, stored_file: StoredFile) -> None:
        """Replace whatever file is currently held."""

    def current(self) -> StoredFile | None:
        """Return the held file, or ``None`` when nothing was ingested yet."""


class SingleFileStore:
    """Keeps at most one :class:`StoredFile` in process memory.

    The stored value is immutable and carries its own category, so replacing
    the reference under the lock is enough for readers to always observe a
    complete file. Callers take one snapshot with :meth:`current` and use it
    for the whole request.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._file: StoredFile | None = None

    def ingest(self, stored_file: StoredFile) -> None:
        with self._lock:
            self._file = stored_file

    def current(self) -> StoredFile | None:
        with self._lock:
            return self._file
