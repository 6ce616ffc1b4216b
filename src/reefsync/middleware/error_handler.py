"""Exception handlers: domain errors, HTTP errors and the catch-all, all as JSON."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from reefsync.errors import DomainError, OffChainCommitError, OnChainError

logger = structlog.get_logger()


def domain_error_body(exc: DomainError) -> dict[str, object]:
    """Response body for a domain error, including any transaction hashes to reconcile."""
    body: dict[str, object] = {"detail": exc.message, "type": exc.error_type}
    if isinstance(exc, OnChainError) and exc.tx_hash:
        body["tx_hash"] = exc.tx_hash
    if isinstance(exc, OffChainCommitError):
        body["tx_hashes"] = exc.tx_hashes
    return body


def setup_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
        """Map the error kind to its status code."""
        if exc.status_code >= 500:
            logger.error(
                "domain_error",
                path=request.url.path,
                method=request.method,
                error_type=exc.error_type,
                error=exc.message,
            )
        return JSONResponse(status_code=exc.status_code, content=domain_error_body(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": exc.errors()},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions."""
        logger.error(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )
