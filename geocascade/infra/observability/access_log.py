"""Observability layer: per-request access logging for the catalog service."""

from __future__ import annotations

from time import perf_counter

from fastapi import FastAPI, Request

from geocascade.infra.observability.logger import get_logger

PROCESS_TIME_HEADER = "X-Process-Time-Ms"

access_logger = get_logger("uvicorn.access")


def install_access_log(app: FastAPI) -> None:
    """Log `client "METHOD path?query" status duration` for every request.

    Successful responses also carry the handling time in `X-Process-Time-Ms`.
    A handler that raises is logged as 500 before the error propagates.
    """

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        started = perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            response.headers[PROCESS_TIME_HEADER] = f"{(perf_counter() - started) * 1000:.2f}"
            return response
        finally:
            target = request.url.path
            if request.url.query:
                target = f"{target}?{request.url.query}"
            access_logger.info(
                '%s "%s %s" %s %.2fms',
                request.client.host if request.client else "-",
                request.method,
                target,
                status,
                (perf_counter() - started) * 1000,
            )
