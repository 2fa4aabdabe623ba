"""Outbound gateway to the Gemini generative model."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Mapping, Protocol

import httpx

from unirag.metrics.observability import PipelineMetrics, TimedSection, get_logger
from unirag.models import StoredFile

EMPTY_RESPONSE_MESSAGE = (
    "The model returned an empty response. This might be due to the input query or safety settings."
)


class GatewayError(RuntimeError):
    """Raised when the model endpoint cannot produce an answer.

    ``status_code`` is set for non-success HTTP responses and left as ``None``
    for transport failures.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class GatewayConfig:
    """Configuration for the Gemini endpoint."""

    api_key: str
    model: str = "gemini-2.5-flash-preview-05-20"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout_seconds: float | None = None

    @property
    def endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/models/{self.model}:generateContent"


class ModelGateway(Protocol):
    """Protocol describing a multimodal answer backend."""

    async def answer(self, prompt: str, stored_file: StoredFile) -> str:
        """Return the model's answer for ``prompt`` about ``stored_file``."""

    async def aclose(self) -> None:
        """Release any network resources."""


def build_payload(prompt: str, stored_file: StoredFile) -> dict[str, Any]:
    encoded = base64.b64encode(stored_file.content).decode("ascii")
    return {
        "contents": [
            {
                "parts": [
                    {"text": prompt},
                    {"inlineData": {"mimeType": stored_file.media_type, "data": encoded}},
                ]
            }
        ]
    }


def extract_text(result: Mapping[str, Any]) -> str | None:
    """Return ``candidates[0].content.parts[0].text`` if it is present and a non-empty string."""

    try:
        text = result["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    if isinstance(text, str) and text:
        return text
    return None


class GeminiGateway:
    """Sends a prompt plus the stored file to Gemini's ``generateContent``."""

    def __init__(self, config: GatewayConfig, client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._client = client or httpx.AsyncClient(timeout=config.timeout_seconds)
        self._logger = get_logger("gateway")

    async def answer(self, prompt: str, stored_file: StoredFile) -> str:
        self._logger.info(
            "gateway.request",
            model=self._config.model,
            media_type=stored_file.media_type,
            size_bytes=stored_file.size,
        )
        try:
            with TimedSection(PipelineMetrics.observe_gateway):
                response = await self._client.post(
                    self._config.endpoint,
                    json=build_payload(prompt, stored_file),
                    headers={"x-goog-api-key": self._config.api_key},
                )
        except httpx.HTTPError as exc:
            PipelineMetrics.record_gateway_failure("transport")
            self._logger.error("gateway.error", reason="transport", detail=str(exc))
            raise GatewayError(str(exc) or exc.__class__.__name__) from exc

        if not response.is_success:
            PipelineMetrics.record_gateway_failure("status")
            self._logger.error(
                "gateway.error",
                reason="status",
                status_code=response.status_code,
                body=response.text,
            )
            raise GatewayError(
                f"API request failed with status {response.status_code}. See server console for details.",
                status_code=response.status_code,
            )

        try:
            result = response.json()
        except ValueError as exc:
            PipelineMetrics.record_gateway_failure("decode")
            self._logger.error("gateway.error", reason="decode", body=response.text)
            raise GatewayError(f"Invalid JSON from model endpoint: {exc}") from exc

        text = extract_text(result)
        if text is None:
            PipelineMetrics.record_empty_response()
            self._logger.warning("gateway.empty_response", result=result)
            return EMPTY_RESPONSE_MESSAGE
        return text

    async def aclose(self) -> None:
        await self._client.aclose()
