"""Query orchestration combining the model gateway and synthetic analytics."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable

from unirag.metrics.observability import get_logger
from unirag.models import QueryResult
from unirag.services.gateway import GatewayError, ModelGateway
from unirag.storage.store import FileStore
from unirag.synthesis.metrics import MetricsSynthesizer, RandomMetricsSynthesizer
from unirag.synthesis.sources import RandomSourceSynthesizer, SourceSynthesizer

NO_FILE_MESSAGE = "Please upload and process a file before asking a question."
GATEWAY_FAILURE_PREFIX = "An error occurred while communicating with the AI model: "


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""

    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class QueryService:
    """Answers questions against the stored file.

    Gateway failures never escape :meth:`answer`; they are turned into a
    chat-style explanation so the caller always gets a result.
    """

    def __init__(
        self,
        store: FileStore,
        gateway: ModelGateway,
        metrics: MetricsSynthesizer | None = None,
        sources: SourceSynthesizer | None = None,
        clock: Callable[[], str] = utc_timestamp,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._metrics = metrics or RandomMetricsSynthesizer()
        self._sources = sources or RandomSourceSynthesizer()
        self._clock = clock
        self._logger = get_logger("query")

    async def answer(self, query: str) -> QueryResult:
        stored_file = self._store.current()
        if stored_file is None:
            self._logger.info("query.no_file")
            return QueryResult(
                answer=NO_FILE_MESSAGE,
                sources=[],
                timestamp=self._clock(),
                metrics=self._metrics.synthesize(),
            )

        self._logger.info("query.forwarding", query=query, category=stored_file.category.value)
        start = time.perf_counter()
        try:
            text = await self._gateway.answer(query, stored_file)
            degraded = False
        except GatewayError as exc:
            text = f"{GATEWAY_FAILURE_PREFIX}{exc}"
            degraded = True
        self._logger.info(
            "query.complete",
            degraded=degraded,
            duration_seconds=time.perf_counter() - start,
        )
        return QueryResult(
            answer=text,
            sources=self._sources.synthesize(stored_file.category),
            timestamp=self._clock(),
            metrics=self._metrics.synthesize(),
        )
