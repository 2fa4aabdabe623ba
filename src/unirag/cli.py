"""CLI for running the UniRAG API server."""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

import uvicorn

from unirag.config import get_settings
from unirag.metrics.observability import configure_logging, get_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve the UniRAG multimodal query API")
    parser.add_argument("--host", default=None, help="Interface to bind (defaults to UNIRAG_HOST)")
    parser.add_argument("--port", type=int, default=None, help="Port to bind (defaults to UNIRAG_PORT)")
    parser.add_argument("--reload", action="store_true", help="Reload on source changes (development only)")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)
    host = args.host or settings.host
    port = args.port or settings.port
    get_logger("cli").info("server.starting", url=f"http://{host}:{port}", model=settings.gemini_model)
    uvicorn.run(
        "unirag.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":  # pragma: no cover - manual execution
    sys.exit(main())
