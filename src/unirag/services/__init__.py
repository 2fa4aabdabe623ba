"""Service layer orchestrations for UniRAG."""

from .gateway import GatewayConfig, GatewayError, GeminiGateway, ModelGateway
from .query import QueryService

__all__ = [
    "GatewayConfig",
    "GatewayError",
    "GeminiGateway",
    "ModelGateway",
    "QueryService",
]
