from typing import Iterable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chatrelay.utils.logger import get_logger

logger = get_logger("chatrelay.core.errors")


class ChatRelayError(Exception):
    """Base class for every error that is turned into an HTTP response."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ------ Request / auth errors -----
class ValidationError(ChatRelayError):
    status_code = 400
    default_message = "Missing fields"


class ConflictOrInvalidError(ChatRelayError):
    status_code = 400
    default_message = "User already exists or invalid data"


class InvalidCredentialsError(ChatRelayError):
    status_code = 401
    default_message = "Invalid credentials"


class MethodNotAllowedError(ChatRelayError):
    status_code = 405
    default_message = "Method Not Allowed"

    def __init__(self, allowed: Iterable[str], message: str = None):
        self.allowed = sorted(allowed)
        super().__init__(message)


# ------ Downstream (Ollama) errors -----
class ServiceUnavailableError(ChatRelayError):
    status_code = 503
    default_message = "Cannot connect to Ollama service. Please ensure Ollama is running."


class ServiceUnreachableError(ChatRelayError):
    status_code = 503
    default_message = "Ollama service not found. Please check your network configuration."


class ModelNotAvailableError(ChatRelayError):
    status_code = 404
    default_message = "The specified AI model is not available."


class DownstreamTimeoutError(ChatRelayError):
    status_code = 500
    default_message = "Ollama request timed out."


class UnknownDownstreamError(ChatRelayError):
    status_code = 500
    default_message = "Failed to get response from Ollama."


# ------ Store errors (never reach the client directly) -----
class StoreError(Exception):
    pass


class DuplicateUserError(StoreError):
    pass


class StoreRejectedError(StoreError):
    pass


def register_exception_handlers(app: FastAPI) -> None:
    """Translate every failure into a JSON body with an `error` field."""

    @app.exception_handler(ChatRelayError)
    async def chat_relay_error_handler(request: Request, exc: ChatRelayError):
        logger.warning("Request failed", extra={
            "error_type": type(exc).__name__,
            "status_code": exc.status_code,
            "path": request.url.path,
        })
        headers = None
        if isinstance(exc, MethodNotAllowedError):
            headers = {"Allow": ", ".join(exc.allowed)}
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.warning("Malformed request body", extra={"path": request.url.path, "errors": len(exc.errors())})
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled error", exc_info=exc, extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"error": "Internal server error"})
