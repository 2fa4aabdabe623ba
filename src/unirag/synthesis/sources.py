"""Synthetic source attribution records."""

from __future__ import annotations

import random
from typing import Callable, Protocol, Sequence
from uuid import uuid4

from unirag.models import ProcessedCategory, SourceRecord

IMAGE_SOURCE_TEXT = "Detected object with high confidence in the upper-left quadrant."
AUDIO_SOURCE_TEXT = "Transcript segment identified as relevant to the user's query."
UNKNOWN_SOURCE_TEXT = "Data chunk retrieved from the vectorized file content."


class SourceSynthesizer(Protocol):
    """Protocol describing source attribution behaviour."""

    def synthesize(self, category: ProcessedCategory | str) -> Sequence[SourceRecord]:
        """Return attribution records shaped for ``category``."""


def new_chunk_id() -> str:
    return f"chunk_{uuid4().hex[:12]}"


def format_timestamp(seconds: float) -> str:
    """Render elapsed seconds as ``M:SS``."""

    minutes, remainder = divmod(int(seconds), 60)
    return f"{minutes}:{remainder:02d}"


class RandomSourceSynthesizer:
    """Fabricates two to four records whose shape follows the file category."""

    def __init__(
        self,
        rng: random.Random | None = None,
        *,
        min_sources: int = 2,
        max_sources: int = 4,
        audio_span_seconds: float = 180.0,
    ) -> None:
        self._rng = rng or random.Random()
        self._min_sources = min_sources
        self._max_sources = max_sources
        self._audio_span = audio_span_seconds
        self._builders: dict[ProcessedCategory, Callable[[str], SourceRecord]] = {
            ProcessedCategory.DOCUMENT: self._document,
            ProcessedCategory.IMAGE: self._image,
            ProcessedCategory.AUDIO: self._audio,
            ProcessedCategory.UNKNOWN: self._unknown,
        }

    def synthesize(self, category: ProcessedCategory | str) -> Sequence[SourceRecord]:
        build = self._builders[ProcessedCategory.coerce(category)]
        count = self._rng.randint(self._min_sources, self._max_sources)
        return [build(new_chunk_id()) for _ in range(count)]

    def _document(self, chunk_id: str) -> SourceRecord:
        page = self._rng.randint(1, 100)
        section = self._rng.randint(1, 5)
        return SourceRecord(
            chunk_id=chunk_id,
            type=ProcessedCategory.DOCUMENT,
            page=page,
            text=f"Excerpt from Section {section}, discussing key performance indicators...",
        )

    def _image(self, chunk_id: str) -> SourceRecord:
        return SourceRecord(
            chunk_id=chunk_id,
            type=ProcessedCategory.IMAGE,
            confidence=self._rng.uniform(0.80, 0.99),
            text=IMAGE_SOURCE_TEXT,
        )

    def _audio(self, chunk_id: str) -> SourceRecord:
        # random() is half-open so the timestamp never reaches 3:00
        start = self._rng.random() * self._audio_span
        return SourceRecord(
            chunk_id=chunk_id,
            type=ProcessedCategory.AUDIO,
            timestamp=format_timestamp(start),
            text=AUDIO_SOURCE_TEXT,
        )

    def _unknown(self, chunk_id: str) -> SourceRecord:
        return SourceRecord(chunk_id=chunk_id, type=ProcessedCategory.UNKNOWN, text=UNKNOWN_SOURCE_TEXT)
