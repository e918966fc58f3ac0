"""FastAPI application serving the metrics and health endpoints."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .exposition import CONTENT_TYPE, encode
from .registry import ProviderRegistry

logger = logging.getLogger(__name__)


def create_app(registry: ProviderRegistry, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings()
    app = FastAPI(
        title="Android Metrics Exporter",
        description="Prometheus exporter for device power, memory, storage, CPU and display state.",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.registry = registry

    # Plain (non-async) so each scrape samples on its own worker thread.
    @app.get("/metrics", summary="Return current device metrics", tags=["metrics"])
    def metrics():
        try:
            snapshot = registry.collect()
            body = encode(snapshot, metadata=settings.metadata)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Failed to render metrics")
            return PlainTextResponse("internal error", status_code=500)
        if snapshot.failed:
            logger.info("Served partial snapshot, failed providers: %s", ", ".join(snapshot.failed))
        return Response(content=body, media_type=CONTENT_TYPE)

    @app.get("/health", summary="Service liveness check", tags=["system"])
    async def health():
        return PlainTextResponse("ok")

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        # Unknown paths and unsupported methods both answer 404.
        if exc.status_code in (404, 405):
            return PlainTextResponse("not found", status_code=404)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    return app
