"""FastAPI application exposing UniRAG services."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional
from uuid import uuid4

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from unirag.api.schemas import (
    ErrorResponse,
    ProcessResponse,
    QueryErrorResponse,
    QueryRequest,
    QueryResponse,
)
from unirag.config import Settings, get_settings
from unirag.ingestion import FileIngestor, IngestionConfig, IngestionError, UploadTooLargeError, spool_upload
from unirag.metrics.observability import bind_correlation_id, clear_correlation_id, configure_logging, get_logger
from unirag.services.gateway import GatewayConfig, GeminiGateway, ModelGateway
from unirag.services.query import QueryService
from unirag.storage import FileStore, SingleFileStore

QUERY_REQUIRED_MESSAGE = "Query is required"
NO_FILE_UPLOADED_MESSAGE = "No file uploaded."
INGESTION_FAILED_MESSAGE = "Failed to read or process the uploaded file."


@dataclass(frozen=True)
class AppDependencies:
    store: FileStore
    ingestor: FileIngestor
    gateway: ModelGateway
    query_service: QueryService


def _build_dependencies(settings: Settings) -> AppDependencies:
    store = SingleFileStore()
    ingestor = FileIngestor(
        store,
        IngestionConfig(default_embedding_set=settings.default_embedding_set),
    )
    gateway = GeminiGateway(
        GatewayConfig(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout_seconds=settings.gateway_timeout_seconds,
        ),
    )
    query_service = QueryService(store=store, gateway=gateway)
    return AppDependencies(store=store, ingestor=ingestor, gateway=gateway, query_service=query_service)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


def create_app(*, settings: Settings | None = None, dependencies: AppDependencies | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    logger = get_logger("api")
    deps = dependencies or _build_dependencies(settings)

    # Uploads are spooled here before being read into memory.
    settings.upload_dir.mkdir(parents=True, exist_ok=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("server.started", port=settings.port, model=settings.gemini_model, upload_dir=str(settings.upload_dir))
        try:
            yield
        finally:
            await deps.gateway.aclose()

    app = FastAPI(title="UniRAG API", version="0.1.0", lifespan=lifespan)
    app.state.dependencies = deps

    if settings.cors_allow_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.cors_allow_origins),
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=list(settings.cors_allow_methods),
            allow_headers=list(settings.cors_allow_headers),
        )

    @app.middleware("http")
    async def add_correlation_id(request: Request, call_next):  # type: ignore[override]
        correlation_id = request.headers.get("X-Request-ID", uuid4().hex)
        request.state.correlation_id = correlation_id
        bind_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()
        response.headers["X-Correlation-ID"] = correlation_id
        return response

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("request.invalid", path=request.url.path, error_count=len(exc.errors()))
        if request.url.path == "/api/query":
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content=QueryErrorResponse(error=QUERY_REQUIRED_MESSAGE).model_dump(),
            )
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid request.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        correlation_id = getattr(request.state, "correlation_id", uuid4().hex)
        logger.error("unhandled.error", correlation_id=correlation_id, detail=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"status": "error", "message": "Internal Server Error", "correlation_id": correlation_id},
        )

    def get_dependencies(request: Request) -> AppDependencies:
        return request.app.state.dependencies

    def get_ingestor(dep: AppDependencies = Depends(get_dependencies)) -> FileIngestor:
        return dep.ingestor

    def get_query_service(dep: AppDependencies = Depends(get_dependencies)) -> QueryService:
        return dep.query_service

    @app.post(
        "/api/process",
        response_model=ProcessResponse,
        responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def process_file(
        file: Optional[UploadFile] = File(default=None),
        embedding_name: Optional[str] = Form(default=None, alias="embeddingName"),
        ingestor: FileIngestor = Depends(get_ingestor),
    ):
        if file is None:
            logger.warning("process.rejected", reason="missing_file")
            return _error(status.HTTP_400_BAD_REQUEST, NO_FILE_UPLOADED_MESSAGE)

        logger.info("process.received", filename=file.filename, media_type=file.content_type)
        try:
            try:
                path = await spool_upload(
                    file.read,
                    directory=settings.upload_dir,
                    max_bytes=settings.max_upload_bytes,
                )
            finally:
                await file.close()
            result = await run_in_threadpool(
                ingestor.ingest,
                path,
                media_type=file.content_type,
                filename=file.filename,
                embedding_name=embedding_name,
            )
        except UploadTooLargeError as exc:
            logger.warning("process.rejected", reason="too_large", filename=file.filename, detail=str(exc))
            return _error(status.HTTP_413_CONTENT_TOO_LARGE, str(exc))
        except IngestionError as exc:
            logger.error("process.error", filename=file.filename, detail=str(exc))
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INGESTION_FAILED_MESSAGE)

        logger.info(
            "process.complete",
            filename=file.filename,
            data_type=result.category.display_name,
            embedding_set=result.embedding_set,
        )
        return ProcessResponse.from_result(result)

    @app.post(
        "/api/query",
        response_model=QueryResponse,
        response_model_exclude_none=True,
        responses={400: {"model": QueryErrorResponse}},
    )
    async def query_file(
        payload: Optional[QueryRequest] = None,
        service: QueryService = Depends(get_query_service),
    ):
        question = payload.query if payload is not None else None
        if not question or not question.strip():
            logger.warning("query.rejected", reason="missing_query")
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content=QueryErrorResponse(error=QUERY_REQUIRED_MESSAGE).model_dump(),
            )
        logger.info("query.received", query=question)
        result = await service.answer(question)
        return QueryResponse.from_result(result)

    @app.get("/metrics")
    async def metrics() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    @app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        from unirag import __version__

        return {"status": "ok", "version": __version__, "environment": settings.environment}

    @app.head("/healthz")
    async def healthcheck_head() -> Response:
        return Response(status_code=status.HTTP_200_OK)

    @app.get("/livez")
    async def liveness() -> dict[str, str]:
        return {"status": "alive"}

    return app
