"""
Application errors and FastAPI exception handlers.
"""

from typing import Any, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from app.core.logging import get_logger

logger = get_logger(__name__)


class AppError(Exception):
    """Base class for errors that map onto an HTTP response"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class RateLimitExceededError(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, message: str, retry_after: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class ConfigurationError(AppError):
    code = "CONFIGURATION_ERROR"


# Provider errors ----------------------------------------------------
class ProviderError(AppError):
    """An external collaborator (speech, LLM, storage, identity) failed"""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "PROVIDER_ERROR"
    retryable: bool = False


class TranscriptionError(ProviderError):
    code = "TRANSCRIPTION_FAILED"


class StorageError(ProviderError):
    code = "STORAGE_ERROR"


class IdentityProviderError(ProviderError):
    code = "IDENTITY_PROVIDER_ERROR"
    retryable = True


class SummarizationError(ProviderError):
    code = "SUMMARIZATION_FAILED"


class RateLimitedError(SummarizationError):
    code = "LLM_RATE_LIMITED"
    retryable = True


class ProviderUnavailableError(SummarizationError):
    code = "LLM_UNAVAILABLE"
    retryable = True


class InvalidContentError(SummarizationError):
    code = "LLM_INVALID_CONTENT"


class ResponseParseError(SummarizationError):
    code = "LLM_PARSE_ERROR"


# Handlers -----------------------------------------------------------
def _error_body(request: Request, code: str, message: str, details: Any = None) -> dict:
    return {
        "error": {"code": code, "message": message, "details": details},
        "request_id": getattr(request.state, "request_id", None),
    }


async def app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code}: {exc.message}")
    headers = None
    if isinstance(exc, RateLimitExceededError) and exc.retry_after:
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.code, exc.message, exc.details),
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, "HTTP_ERROR", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(
            request, "VALIDATION_ERROR", "Request validation failed", jsonable_errors(exc)
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "INTERNAL_ERROR", "Internal server error"),
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    """Strip non-serialisable context from pydantic error entries"""
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
