"""Pydantic models for the UniRAG API.

Wire keys are camelCase to match the browser client.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from unirag.models import IngestionResult, Metrics, QueryResult, SourceRecord


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorResponse(BaseModel):
    status: Literal["error"] = "error"
    message: str


class QueryErrorResponse(BaseModel):
    error: str


class ProcessResponse(CamelModel):
    status: Literal["succeeded"] = "succeeded"
    message: str = "Ingestion complete."
    embedding_set: str = Field(..., description="Echoed embedding-set name or the configured default")
    chunks: int = Field(..., ge=0, description="Synthetic chunk count for display")
    data_type: Literal["Document", "Image", "Audio", "Unknown"]

    @classmethod
    def from_result(cls, result: IngestionResult) -> "ProcessResponse":
        return cls(
            embedding_set=result.embedding_set,
            chunks=result.chunks,
            data_type=result.category.display_name,
        )


class QueryRequest(BaseModel):
    query: Optional[str] = Field(default=None, description="End-user question about the uploaded file")


class RetrievalMetricsModel(CamelModel):
    accuracy: float = Field(..., ge=0.0, le=1.0)
    avg_similarity: float = Field(..., ge=0.0, le=1.0)
    semantic_coherence: float = Field(..., ge=0.0, le=1.0)
    context_used: int = Field(..., ge=0)


class ResponseMetricsModel(CamelModel):
    accuracy: float = Field(..., ge=0.0, le=1.0)
    content_citation: float = Field(..., ge=0.0, le=1.0)
    completeness: float = Field(..., ge=0.0, le=1.0)
    reading_time: float = Field(..., ge=0.0, description="Estimated reading time in minutes")


class MetricsModel(CamelModel):
    overall_accuracy: float = Field(..., ge=0.0, le=1.0)
    retrieval: RetrievalMetricsModel
    response: ResponseMetricsModel

    @classmethod
    def from_metrics(cls, metrics: Metrics) -> "MetricsModel":
        return cls(
            overall_accuracy=metrics.overall_accuracy,
            retrieval=RetrievalMetricsModel(
                accuracy=metrics.retrieval.accuracy,
                avg_similarity=metrics.retrieval.avg_similarity,
                semantic_coherence=metrics.retrieval.semantic_coherence,
                context_used=metrics.retrieval.context_used,
            ),
            response=ResponseMetricsModel(
                accuracy=metrics.response.accuracy,
                content_citation=metrics.response.content_citation,
                completeness=metrics.response.completeness,
                reading_time=metrics.response.reading_time,
            ),
        )


class SourceModel(CamelModel):
    chunk_id: str
    type: Literal["document", "image", "audio", "unknown"]
    text: str
    page: Optional[int] = None
    confidence: Optional[float] = None
    timestamp: Optional[str] = None

    @classmethod
    def from_record(cls, record: SourceRecord) -> "SourceModel":
        return cls(
            chunk_id=record.chunk_id,
            type=record.type.value,
            text=record.text,
            page=record.page,
            confidence=record.confidence,
            timestamp=record.timestamp,
        )


class QueryResponse(CamelModel):
    answer: str
    sources: List[SourceModel]
    timestamp: str = Field(..., description="ISO-8601 UTC time the answer was produced")
    metrics: MetricsModel

    @classmethod
    def from_result(cls, result: QueryResult) -> "QueryResponse":
        return cls(
            answer=result.answer,
            sources=[SourceModel.from_record(record) for record in result.sources],
            timestamp=result.timestamp,
            metrics=MetricsModel.from_metrics(result.metrics),
        )
