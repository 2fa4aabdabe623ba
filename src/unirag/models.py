"""Shared domain models used across the UniRAG pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence


class ProcessedCategory(str, Enum):
    """Coarse media category derived from an upload's declared MIME type."""

    DOCUMENT = "document"
    IMAGE = "image"
    AUDIO = "audio"
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def coerce(cls, value: "ProcessedCategory | str | None") -> "ProcessedCategory":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.UNKNOWN


def classify_media_type(media_type: str | None) -> ProcessedCategory:
    """Map a declared MIME type onto a processed category.

    ``pdf`` or ``doc`` anywhere in the type wins over the prefix checks, so
    the OOXML word types land in documents while ``application/msword``
    does not match either substring and stays unknown.
    """

    value = (media_type or "").lower()
    if "pdf" in value or "doc" in value:
        return ProcessedCategory.DOCUMENT
    if value.startswith("image/"):
        return ProcessedCategory.IMAGE
    if value.startswith("audio/"):
        return ProcessedCategory.AUDIO
    return ProcessedCategory.UNKNOWN


@dataclass(frozen=True)
class StoredFile:
    """The single uploaded file held in memory for querying."""

    media_type: str
    content: bytes = field(repr=False)
    category: ProcessedCategory = ProcessedCategory.UNKNOWN
    filename: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class RetrievalMetrics:
    accuracy: float
    avg_similarity: float
    semantic_coherence: float
    context_used: int


@dataclass(frozen=True)
class ResponseMetrics:
    accuracy: float
    content_citation: float
    completeness: float
    reading_time: float


@dataclass(frozen=True)
class Metrics:
    """Synthetic quality scores attached to every query response."""

    overall_accuracy: float
    retrieval: RetrievalMetrics
    response: ResponseMetrics


@dataclass(frozen=True)
class SourceRecord:
    """Synthetic source attribution; optional fields depend on ``type``."""

    chunk_id: str
    type: ProcessedCategory
    text: str
    page: int | None = None
    confidence: float | None = None
    timestamp: str | None = None


@dataclass(frozen=True)
class IngestionResult:
    """Summary returned after a file has been stored."""

    embedding_set: str
    chunks: int
    category: ProcessedCategory
    filename: str | None = None


@dataclass(frozen=True)
class QueryResult:
    """Answer plus the synthetic analytics shown next to it."""

    answer: str
    sources: Sequence[SourceRecord]
    timestamp: str
    metrics: Metrics
