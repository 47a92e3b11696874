from __future__ import annotations

import time
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from agenda.core.logging import clear_request_context, get_logger, set_request_id

# sondas do orquestrador: só propagam o request id, sem log
QUIET_PATHS = frozenset({"/healthz"})


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = set_request_id(request.headers.get("X-Request-ID"))
        quiet = request.url.path in QUIET_PATHS

        log = get_logger().bind(path=request.url.path, method=request.method)
        if not quiet:
            log.info("request.start")

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            log.exception("request.error")
            clear_request_context()
            raise
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)

        response.headers["X-Request-ID"] = rid
        if not quiet:
            log.bind(status_code=response.status_code, duration_ms=elapsed_ms).info(
                "request.end"
            )
        clear_request_context()
        return response
