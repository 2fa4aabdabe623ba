"""Synthetic quality metrics."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Protocol

from unirag.models import Metrics, ResponseMetrics, RetrievalMetrics


@dataclass(frozen=True)
class MetricsRanges:
    """Bounds for every synthesized score."""

    high_accuracy: tuple[float, float] = (0.80, 0.98)
    avg_similarity: tuple[float, float] = (0.85, 0.95)
    semantic_coherence: tuple[float, float] = (0.88, 0.98)
    context_used: tuple[int, int] = (10_000, 160_000)  # upper bound exclusive
    reading_time: tuple[float, float] = (0.5, 2.5)


class MetricsSynthesizer(Protocol):
    """Protocol describing metrics generation behaviour."""

    def synthesize(self) -> Metrics:
        """Return metrics for a single query response."""


class RandomMetricsSynthesizer:
    """Draws plausible, bounded scores with no relation to the query."""

    def __init__(self, ranges: MetricsRanges | None = None, rng: random.Random | None = None) -> None:
        self._ranges = ranges or MetricsRanges()
        self._rng = rng or random.Random()

    def synthesize(self) -> Metrics:
        ranges = self._ranges
        retrieval_accuracy = self._high_accuracy()
        response_accuracy = self._high_accuracy()
        retrieval = RetrievalMetrics(
            accuracy=retrieval_accuracy,
            avg_similarity=self._rng.uniform(*ranges.avg_similarity),
            semantic_coherence=self._rng.uniform(*ranges.semantic_coherence),
            context_used=self._rng.randrange(*ranges.context_used),
        )
        response = ResponseMetrics(
            accuracy=response_accuracy,
            content_citation=self._high_accuracy(),
            completeness=self._high_accuracy(),
            reading_time=self._rng.uniform(*ranges.reading_time),
        )
        return Metrics(
            overall_accuracy=(retrieval_accuracy + response_accuracy) / 2,
            retrieval=retrieval,
            response=response,
        )

    def _high_accuracy(self) -> float:
        return self._rng.uniform(*self._ranges.high_accuracy)
