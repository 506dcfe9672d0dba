"""CORS and request-tracing middleware."""

import uuid
import time
import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from backend.core.config import settings

logger = logging.getLogger("citt.access")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag every request with an id and log one access line per response.

    An ``X-Request-Id`` sent by a proxy is reused so traces line up.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()

        response: Response = await call_next(request)

        duration = round((time.perf_counter() - started) * 1000, 2)
        response.headers["X-Request-Id"] = request_id
        response.headers["X-Response-Time-Ms"] = str(duration)

        principal = getattr(request.state, "user", None)
        logger.info(
            "%s %s %s %sms user=%s rid=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration,
            principal.email if principal else "-",
            request_id,
        )
        return response


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application."""
    origins = list(dict.fromkeys([*settings.CORS_ORIGINS, settings.FRONTEND_URL]))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
        expose_headers=["X-Request-Id", "X-Response-Time-Ms"],
    )

    app.add_middleware(RequestIdMiddleware)
