"""Tests for the FastAPI application."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path

import httpx
from fastapi.testclient import TestClient

from unirag.api.app import AppDependencies, create_app
from unirag.config import Settings
from unirag.ingestion import FileIngestor, IngestionError
from unirag.models import ProcessedCategory, StoredFile
from unirag.services.gateway import EMPTY_RESPONSE_MESSAGE, GatewayConfig, GeminiGateway
from unirag.services.query import GATEWAY_FAILURE_PREFIX, NO_FILE_MESSAGE, QueryService
from unirag.storage import SingleFileStore

METRIC_KEYS = {"overallAccuracy", "retrieval", "response"}


class StubGateway:
    def __init__(self) -> None:
        self.prompts: list[str] = []

    async def answer(self, prompt: str, stored_file: StoredFile) -> str:
        self.prompts.append(prompt)
        return f"stub answer about {stored_file.media_type}"

    async def aclose(self) -> None:
        return None


class FailingIngestor:
    def ingest(self, path: Path, **kwargs) -> None:
        path.unlink(missing_ok=True)
        raise IngestionError("disk unavailable")


def _settings(tmp_path: Path, **overrides) -> Settings:
    values = {"environment": "test", "gemini_api_key": "test-key", "upload_dir": tmp_path / "uploads"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def create_test_client(tmp_path: Path, gateway=None, ingestor=None, **overrides) -> tuple[TestClient, AppDependencies]:
    store = SingleFileStore()
    gateway = gateway or StubGateway()
    deps = AppDependencies(
        store=store,
        ingestor=ingestor or FileIngestor(store),
        gateway=gateway,
        query_service=QueryService(store=store, gateway=gateway),
    )
    app = create_app(settings=_settings(tmp_path, **overrides), dependencies=deps)
    return TestClient(app), deps


def _offline_gateway() -> GeminiGateway:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("network unreachable", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeminiGateway(GatewayConfig(api_key="test-key"), client=client)


def test_scratch_directory_created_on_startup(tmp_path: Path) -> None:
    create_test_client(tmp_path)
    assert (tmp_path / "uploads").is_dir()


def test_process_without_file_is_rejected_repeatably(tmp_path: Path) -> None:
    client, deps = create_test_client(tmp_path)
    for _ in range(2):
        response = client.post("/api/process", data={"embeddingName": "set-a"})
        assert response.status_code == 400
        assert response.json() == {"status": "error", "message": "No file uploaded."}
    assert deps.store.current() is None


def test_query_before_ingest_returns_instruction(tmp_path: Path) -> None:
    client, _ = create_test_client(tmp_path)
    response = client.post("/api/query", json={"query": "What is in the file?"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["answer"] == NO_FILE_MESSAGE
    assert payload["sources"] == []
    assert payload["timestamp"].endswith("Z")
    assert set(payload["metrics"]) == METRIC_KEYS


def test_query_requires_text(tmp_path: Path) -> None:
    client, _ = create_test_client(tmp_path)
    for body in ({}, {"query": ""}, {"query": "   "}, {"query": 42}):
        response = client.post("/api/query", json=body)
        assert response.status_code == 400, body
        assert response.json() == {"error": "Query is required"}
    response = client.post("/api/query")
    assert response.status_code == 400


def test_pdf_ingest_then_query_returns_document_sources(tmp_path: Path) -> None:
    client, deps = create_test_client(tmp_path)

    upload = client.post(
        "/api/process",
        files={"file": ("report.pdf", BytesIO(b"%PDF-1.4 dummy"), "application/pdf")},
    )
    assert upload.status_code == 200, upload.text
    summary = upload.json()
    assert summary["status"] == "succeeded"
    assert summary["message"] == "Ingestion complete."
    assert summary["dataType"] == "Document"
    assert summary["embeddingSet"] == "multimodal-set-1"
    assert 100 <= summary["chunks"] < 600
    assert list((tmp_path / "uploads").iterdir()) == []
    assert deps.store.current().content == b"%PDF-1.4 dummy"

    response = client.post("/api/query", json={"query": "Summarise the report"})
    assert response.status_code == 200, response.text
    payload = response.json()
    assert payload["answer"] == "stub answer about application/pdf"
    assert 2 <= len(payload["sources"]) <= 4
    for source in payload["sources"]:
        assert source["type"] == "document"
        assert source["chunkId"].startswith("chunk_")
        assert 1 <= source["page"] <= 100
        assert "confidence" not in source and "timestamp" not in source
    metrics = payload["metrics"]
    assert 0.80 <= metrics["overallAccuracy"] <= 0.98
    assert set(metrics["retrieval"]) == {"accuracy", "avgSimilarity", "semanticCoherence", "contextUsed"}
    assert set(metrics["response"]) == {"accuracy", "contentCitation", "completeness", "readingTime"}


def test_embedding_name_is_echoed(tmp_path: Path) -> None:
    client, _ = create_test_client(tmp_path)
    response = client.post(
        "/api/process",
        files={"file": ("clip.mp3", BytesIO(b"ID3"), "audio/mpeg")},
        data={"embeddingName": "podcasts"},
    )
    assert response.status_code == 200
    assert response.json()["embeddingSet"] == "podcasts"
    assert response.json()["dataType"] == "Audio"


def test_new_ingest_replaces_previous_file(tmp_path: Path) -> None:
    client, deps = create_test_client(tmp_path)
    client.post("/api/process", files={"file": ("a.pdf", BytesIO(b"a"), "application/pdf")})
    client.post("/api/process", files={"file": ("b.bin", BytesIO(b"b"), "application/octet-stream")})
    assert deps.store.current().category is ProcessedCategory.UNKNOWN

    payload = client.post("/api/query", json={"query": "hi"}).json()
    assert all(source["type"] == "unknown" for source in payload["sources"])


def test_upstream_failure_is_reported_as_answer(tmp_path: Path) -> None:
    client, _ = create_test_client(tmp_path, gateway=_offline_gateway())
    upload = client.post("/api/process", files={"file": ("cat.png", BytesIO(b"\x89PNG"), "image/png")})
    assert upload.json()["dataType"] == "Image"

    response = client.post("/api/query", json={"query": "hello"})
    assert response.status_code == 200, response.text
    payload = response.json()
    assert payload["answer"].startswith(GATEWAY_FAILURE_PREFIX)
    assert "network unreachable" in payload["answer"]
    assert 2 <= len(payload["sources"]) <= 4
    for source in payload["sources"]:
        assert source["type"] == "image"
        assert 0.80 <= source["confidence"] <= 0.99
    assert set(payload["metrics"]) == METRIC_KEYS


def test_oversized_upload_returns_413(tmp_path: Path) -> None:
    client, deps = create_test_client(tmp_path, max_upload_size_mb=0)
    response = client.post("/api/process", files={"file": ("big.pdf", BytesIO(b"0123456789"), "application/pdf")})
    assert response.status_code == 413
    assert response.json()["status"] == "error"
    assert list((tmp_path / "uploads").iterdir()) == []
    assert deps.store.current() is None


def test_ingest_failure_returns_500(tmp_path: Path) -> None:
    client, _ = create_test_client(tmp_path, ingestor=FailingIngestor())
    response = client.post("/api/process", files={"file": ("x.pdf", BytesIO(b"x"), "application/pdf")})
    assert response.status_code == 500
    assert response.json() == {"status": "error", "message": "Failed to read or process the uploaded file."}


def test_correlation_id_and_cors_headers(tmp_path: Path) -> None:
    client, _ = create_test_client(tmp_path)
    response = client.get("/livez", headers={"X-Request-ID": "req-123", "Origin": "http://localhost:5173"})
    assert response.status_code == 200
    assert response.headers["X-Correlation-ID"] == "req-123"
    assert response.headers["access-control-allow-origin"] == "*"


def test_health_and_metrics_endpoints(tmp_path: Path) -> None:
    client, _ = create_test_client(tmp_path)
    health = client.get("/healthz")
    assert health.status_code == 200
    assert health.json()["status"] == "ok"
    assert health.json()["environment"] == "test"
    assert client.head("/healthz").status_code == 200

    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "unirag_ingestion_duration_seconds" in metrics.text


class ExplodingQueryService:
    async def answer(self, query: str):
        raise RuntimeError("boom")


def test_non_string_model_text_still_answers_with_200(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": {"a": 1}}]}}]})

    gateway = GeminiGateway(
        GatewayConfig(api_key="test-key"),
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    client, _ = create_test_client(tmp_path, gateway=gateway)
    client.post("/api/process", files={"file": ("cat.png", BytesIO(b"\x89PNG"), "image/png")})

    response = client.post("/api/query", json={"query": "hello"})
    assert response.status_code == 200, response.text
    assert response.json()["answer"] == EMPTY_RESPONSE_MESSAGE


def test_unexpected_error_reports_request_correlation_id(tmp_path: Path) -> None:
    store = SingleFileStore()
    gateway = StubGateway()
    deps = AppDependencies(
        store=store,
        ingestor=FileIngestor(store),
        gateway=gateway,
        query_service=ExplodingQueryService(),
    )
    app = create_app(settings=_settings(tmp_path), dependencies=deps)
    client = TestClient(app, raise_server_exceptions=False)

    response = client.post("/api/query", json={"query": "hello"}, headers={"X-Request-ID": "req-500"})
    assert response.status_code == 500
    assert response.json() == {"status": "error", "message": "Internal Server Error", "correlation_id": "req-500"}
