"""Structured error taxonomy, error factory and FastAPI exception handlers."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Awaitable, Callable, Final, cast

from fastapi import FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

ExceptionHandlerCallable = Callable[[Request, Exception], Awaitable[Response]]

logger = logging.getLogger("jarvis.errors")


class Severity(StrEnum):
    """Severity levels shared by errors and forensic anomalies."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorKind(StrEnum):
    """Closed set of error kinds; the value is the stable machine code."""

    CONFIGURATION = "CONFIG_ERROR"
    VALIDATION = "VALIDATION_ERROR"
    AUTHORIZATION = "AUTHORIZATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RATE_LIMIT = "RATE_LIMIT"
    CONNECTION_FAILURE = "WA_CONNECTION_ERROR"
    SESSION_FAILURE = "WA_SESSION_ERROR"
    PROVIDER_FAILURE = "AI_PROVIDER_ERROR"
    PROVIDER_RATE_LIMIT = "AI_RATE_LIMIT"
    STORAGE = "STORAGE_ERROR"
    FORENSICS = "FORENSICS_ERROR"
    COMMAND = "COMMAND_ERROR"

    @property
    def code(self) -> str:
        return self.value

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS: Final[dict[ErrorKind, int]] = {
    ErrorKind.CONFIGURATION: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.RATE_LIMIT: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.CONNECTION_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.SESSION_FAILURE: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.PROVIDER_FAILURE: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.PROVIDER_RATE_LIMIT: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.STORAGE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.FORENSICS: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.COMMAND: status.HTTP_400_BAD_REQUEST,
}

_RATE_LIMIT_KINDS: Final[frozenset[ErrorKind]] = frozenset(
    {ErrorKind.RATE_LIMIT, ErrorKind.PROVIDER_RATE_LIMIT}
)

INTERNAL_ERROR_CODE: Final[str] = "INTERNAL_ERROR"


class DomainError(Exception):
    """Structured, machine-readable failure with a code and status fixed by its kind.

    ``is_operational`` separates conditions a caller can react to (validation,
    throttling, an unreachable upstream) from defects such as malformed
    persisted rows, which a top-level handler should log and escalate.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        is_operational: bool = True,
    ) -> None:
        super().__init__(message)
        self._kind = ErrorKind(kind)
        self._message = message
        self._context: dict[str, Any] = dict(context or {})
        self._is_operational = is_operational
        self._timestamp = datetime.now(tz=UTC)

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def code(self) -> str:
        return self._kind.code

    @property
    def http_status(self) -> int:
        return self._kind.http_status

    @property
    def message(self) -> str:
        return self._message

    @property
    def context(self) -> dict[str, Any]:
        return dict(self._context)

    @property
    def is_operational(self) -> bool:
        return self._is_operational

    @property
    def timestamp(self) -> datetime:
        return self._timestamp

    @property
    def severity(self) -> Severity:
        if not self._is_operational:
            return Severity.CRITICAL
        if self.http_status >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            return Severity.HIGH
        if self.http_status == status.HTTP_429_TOO_MANY_REQUESTS:
            return Severity.MEDIUM
        return Severity.LOW

    def to_json(self) -> dict[str, Any]:
        """Return the wire shape consumed by the dashboard API."""
        return {
            "code": self.code,
            "message": self._message,
            "timestamp": self._timestamp.isoformat(),
            "context": dict(self._context),
        }

    def __str__(self) -> str:
        return f"[{self.code}] {self._message}"

    def __repr__(self) -> str:
        return f"DomainError(kind={self._kind.name}, message={self._message!r})"


class ErrorFactory:
    """Synchronous constructors binding common error kinds to messages."""

    @staticmethod
    def validation(message: str, context: Mapping[str, Any] | None = None) -> DomainError:
        return DomainError(ErrorKind.VALIDATION, message, context=context)

    @staticmethod
    def not_found(resource: str, id: str | None = None) -> DomainError:  # noqa: A002
        message = f"{resource} not found: {id}" if id else f"{resource} not found"
        return DomainError(ErrorKind.NOT_FOUND, message, context={"resource": resource, "id": id})

    @staticmethod
    def unauthorized(message: str = "Not authorized") -> DomainError:
        return DomainError(ErrorKind.AUTHORIZATION, message)

    @staticmethod
    def rate_limit(message: str = "Rate limit exceeded") -> DomainError:
        return DomainError(ErrorKind.RATE_LIMIT, message)

    @staticmethod
    def connection_failure(
        message: str, context: Mapping[str, Any] | None = None
    ) -> DomainError:
        return DomainError(ErrorKind.CONNECTION_FAILURE, message, context=context)

    @staticmethod
    def session_failure(message: str, context: Mapping[str, Any] | None = None) -> DomainError:
        return DomainError(ErrorKind.SESSION_FAILURE, message, context=context)

    @staticmethod
    def provider_failure(message: str, context: Mapping[str, Any] | None = None) -> DomainError:
        return DomainError(ErrorKind.PROVIDER_FAILURE, message, context=context)

    @staticmethod
    def provider_rate_limit(
        message: str, context: Mapping[str, Any] | None = None
    ) -> DomainError:
        return DomainError(ErrorKind.PROVIDER_RATE_LIMIT, message, context=context)

    @staticmethod
    def storage(message: str, context: Mapping[str, Any] | None = None) -> DomainError:
        return DomainError(ErrorKind.STORAGE, message, context=context)

    @staticmethod
    def configuration(message: str, context: Mapping[str, Any] | None = None) -> DomainError:
        return DomainError(ErrorKind.CONFIGURATION, message, context=context)

    @staticmethod
    def forensics(message: str, context: Mapping[str, Any] | None = None) -> DomainError:
        return DomainError(ErrorKind.FORENSICS, message, context=context)

    @staticmethod
    def command(message: str, context: Mapping[str, Any] | None = None) -> DomainError:
        return DomainError(ErrorKind.COMMAND, message, context=context)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the DomainError and fallback handlers to the FastAPI app."""

    app.add_exception_handler(
        DomainError,
        cast(ExceptionHandlerCallable, domain_error_handler),
    )
    app.add_exception_handler(
        Exception,
        cast(ExceptionHandlerCallable, unexpected_exception_handler),
    )


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    log_extra = {
        "error_code": exc.code,
        "http_status": exc.http_status,
        "severity": str(exc.severity),
        "http_path": request.url.path,
    }
    if not exc.is_operational:
        logger.error(
            "Non-operational domain error",
            exc_info=(exc.__class__, exc, exc.__traceback__),
            extra=log_extra,
        )
    elif exc.http_status >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.warning("Domain error: %s", exc.message, extra=log_extra)
    else:
        logger.info("Domain error: %s", exc.message, extra=log_extra)

    headers: dict[str, str] | None = None
    retry_after = _extract_retry_after(exc)
    if retry_after is not None:
        headers = {"Retry-After": str(retry_after)}

    return JSONResponse(
        content=jsonable_encoder(exc.to_json()),
        status_code=exc.http_status,
        headers=headers,
    )


async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception during request",
        exc_info=(exc.__class__, exc, exc.__traceback__),
    )
    body = build_error_payload(code=INTERNAL_ERROR_CODE, message="Internal server error")
    return JSONResponse(
        content=jsonable_encoder(body),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def build_error_payload(
    *,
    code: ErrorKind | str,
    message: str,
    context: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a body in the DomainError wire shape for errors raised outside the taxonomy."""
    return {
        "code": str(code),
        "message": message,
        "timestamp": datetime.now(tz=UTC).isoformat(),
        "context": dict(context or {}),
    }


def _extract_retry_after(exc: DomainError) -> int | None:
    if exc.kind not in _RATE_LIMIT_KINDS:
        return None
    value = exc.context.get("retry_after")
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


__all__ = [
    "DomainError",
    "ErrorFactory",
    "ErrorKind",
    "INTERNAL_ERROR_CODE",
    "Severity",
    "build_error_payload",
    "domain_error_handler",
    "register_exception_handlers",
    "unexpected_exception_handler",
]
