import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from skillswap.config import settings
from skillswap.core.logging import SecurityLogger
from skillswap.schemas.common import MAX_ID

logger = logging.getLogger(__name__)


def api_error(
    status_code: int,
    message: str,
    error: str | None = None,
    details: object | None = None,
    headers: dict[str, str] | None = None,
) -> HTTPException:
    detail: dict[str, object] = {"message": message}
    if error:
        detail["error"] = error
    if details is not None:
        detail["details"] = details
    return HTTPException(status_code=status_code, detail=detail, headers=headers)


def parse_id(raw: str, label: str = "resource") -> int:
    """Parse a path identifier, rejecting anything that is not a positive integer."""
    if not (raw.isascii() and raw.isdigit() and len(raw) <= 19) or not 1 <= int(raw) <= MAX_ID:
        raise api_error(
            status.HTTP_400_BAD_REQUEST,
            f"Invalid {label} ID format",
            "INVALID_ID_FORMAT",
        )
    return int(raw)


def _error_body(detail: object) -> dict[str, object]:
    if isinstance(detail, dict) and "message" in detail:
        return dict(detail)
    return {"message": str(detail)}


def _format_location(loc: tuple[object, ...] | list[object]) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path", "header")]
    return ".".join(parts) or "request"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = [
            {"field": _format_location(err.get("loc", ())), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "message": "Validation failed",
                "error": "VALIDATION_ERROR",
                "details": details,
            },
        )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        SecurityLogger.log_rate_limit_exceeded(
            request, "endpoint", details={"path": request.url.path, "limit": str(exc.detail)}
        )
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={
                "message": "Too many requests, please try again later",
                "error": "RATE_LIMITED",
                "details": str(exc.detail),
            },
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"message": "Duplicate entry", "error": "DUPLICATE_ERROR"},
        )

    async def database_unavailable_handler(request: Request, exc: Exception):
        logger.error(f"Database error on {request.method} {request.url.path}: {exc}")
        health = getattr(request.app.state, "db_health", None)
        if health is not None:
            health.mark_disconnected(type(exc).__name__)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "message": "Database temporarily unavailable",
                "error": "DATABASE_ERROR",
            },
        )

    app.add_exception_handler(OperationalError, database_unavailable_handler)
    app.add_exception_handler(InterfaceError, database_unavailable_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "message": "Server error",
                "error": "SERVER_ERROR",
                "details": str(exc) if settings.DEBUG else None,
            },
        )
