"""Request logging middleware: one line per request with status and latency."""

import logging
import time

from fastapi import FastAPI, Request

logger = logging.getLogger("app.requests")


def register_request_logging(app: FastAPI) -> None:
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        latency_ms = round((time.perf_counter() - start) * 1000, 2)
        extra = {
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "latency_ms": latency_ms,
            "ip": request.client.host if request.client else None,
        }
        if response.status_code >= 500:
            logger.error("HTTP request failed", extra=extra)
        elif response.status_code >= 400:
            logger.warning("HTTP request warning", extra=extra)
        else:
            logger.info("HTTP request", extra=extra)
        return response
