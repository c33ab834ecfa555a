import socket
from dataclasses import dataclass, field
from typing import List, Optional

import httpx

from chatrelay.core.errors import (
    ChatRelayError,
    DownstreamTimeoutError,
    ModelNotAvailableError,
    ServiceUnavailableError,
    ServiceUnreachableError,
    UnknownDownstreamError,
)
from chatrelay.utils.logger import get_logger

logger = get_logger("chatrelay.services.ollama")

NO_RESPONSE_PLACEHOLDER = "No response from AI model."

# Messages the resolver puts in OSError when a host name cannot be resolved
_DNS_FAILURE_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "getaddrinfo failed",
    "no address associated with hostname",
)


@dataclass
class HealthStatus:
    reachable: bool
    model_available: bool
    models: List[str] = field(default_factory=list)
    listed: int = 0
    error: Optional[str] = None


def _is_dns_failure(exc: BaseException) -> bool:
    """Walk the exception chain looking for a host resolution failure."""
    seen = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, socket.gaierror):
            return True
        if any(marker in str(current).lower() for marker in _DNS_FAILURE_MARKERS):
            return True
        current = current.__cause__ or current.__context__
    return False


class GenerationClient:
    """
    Thin async client for the Ollama HTTP API.

    One attempt per call, no retries. Every failure of `generate` comes out as
    one of the downstream errors in chatrelay.core.errors; `check_health`
    never raises.
    """

    def __init__(
        self,
        base_url: str,
        model: str,
        generate_timeout: float = 30.0,
        health_timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.generate_timeout = generate_timeout
        self.health_timeout = health_timeout
        self._client = client or httpx.AsyncClient()

    async def aclose(self) -> None:
        await self._client.aclose()

    def classify_error(self, exc: Exception) -> ChatRelayError:
        """Map a transport/HTTP failure onto the downstream error taxonomy."""
        if isinstance(exc, httpx.TimeoutException):
            return DownstreamTimeoutError(
                f"Ollama request timed out after {self.generate_timeout:g} seconds."
            )
        if isinstance(exc, httpx.ConnectError):
            if _is_dns_failure(exc):
                return ServiceUnreachableError()
            return ServiceUnavailableError()
        if isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 404:
            return ModelNotAvailableError(
                f"The specified AI model is not available. Please check if {self.model} is installed."
            )
        return UnknownDownstreamError(f"Failed to get response from Ollama: {exc}")

    async def generate(self, prompt: str) -> str:
        logger.info("Sending generate request", extra={
            "ollama_url": self.base_url,
            "model": self.model,
            "prompt_length": len(prompt),
        })
        try:
            response = await self._client.post(
                f"{self.base_url}/api/generate",
                json={"model": self.model, "prompt": prompt, "stream": False},
                timeout=self.generate_timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            error = self.classify_error(e)
            logger.error("Ollama generate failed", extra={
                "error": str(e),
                "error_kind": type(error).__name__,
            })
            raise error from e

        if not isinstance(data, dict):
            raise UnknownDownstreamError("Failed to get response from Ollama: unexpected response body")

        reply = data.get("response")
        if reply is None:
            logger.warning("Ollama returned no response field")
            return NO_RESPONSE_PLACEHOLDER

        if not isinstance(reply, str):
            reply = str(reply)

        logger.info("Ollama reply received", extra={"reply_length": len(reply)})
        return reply

    async def check_health(self) -> HealthStatus:
        try:
            response = await self._client.get(f"{self.base_url}/api/tags", timeout=self.health_timeout)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Ollama health check failed", extra={"error": str(e)})
            return HealthStatus(reachable=False, model_available=False, error=str(e) or type(e).__name__)

        entries = data.get("models") if isinstance(data, dict) else None
        if entries is None:
            entries = []
        if not isinstance(entries, list):
            logger.warning("Ollama returned an unexpected model list", extra={"models_type": type(entries).__name__})
            return HealthStatus(reachable=False, model_available=False, error="Unexpected response from Ollama /api/tags")

        # Entries without a string name still count as listed models
        models = [m["name"] for m in entries if isinstance(m, dict) and isinstance(m.get("name"), str)]
        return HealthStatus(
            reachable=True,
            model_available=self.model in models,
            models=models,
            listed=len(entries),
        )
