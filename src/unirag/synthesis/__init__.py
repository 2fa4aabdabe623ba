"""Synthetic analytics shown alongside answers.

Nothing here measures real retrieval quality. The generators exist so the UI
contract stays stable until a real retrieval pipeline replaces them.
"""

from .metrics import MetricsSynthesizer, RandomMetricsSynthesizer
from .sources import RandomSourceSynthesizer, SourceSynthesizer

__all__ = [
    "MetricsSynthesizer",
    "RandomMetricsSynthesizer",
    "RandomSourceSynthesizer",
    "SourceSynthesizer",
]
