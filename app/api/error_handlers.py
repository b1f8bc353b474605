"""Global exception handlers: domain errors to JSON, unexpected errors to a bare 500."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.core.errors import MarketError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_market_error_handler(app)
    _register_generic_error_handler(app)


def _register_market_error_handler(app: FastAPI) -> None:
    @app.exception_handler(MarketError)
    async def market_error_handler(request: Request, exc: MarketError) -> JSONResponse:
        extra = {"error_code": exc.code, "path": request.url.path}
        if exc.http_status >= 500:
            logger.error("Request failed: %s", exc.message, extra=extra)
        else:
            logger.info("Request rejected: %s", exc.message, extra=extra)
        headers = {"WWW-Authenticate": "Bearer"} if exc.http_status == 401 else None
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(), headers=headers
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all: never leaks internal details."""
        logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error", "code": "INTERNAL_ERROR"},
        )
