import asyncio
import contextlib
from collections.abc import Awaitable, Callable

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest


logger = structlog.get_logger()

HealthCheck = Callable[[], Awaitable[bool]]


def create_metrics_app(storage_health: HealthCheck | None = None) -> FastAPI:
    """
    Create FastAPI application exposing transfer client metrics.

    ``/health`` reports the history storage when a check is given; the
    in-memory store has nothing to check and is always reported as up.
    """
    app = FastAPI(
        title="Transfer Client Metrics",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    @app.get("/metrics", response_class=PlainTextResponse)
    async def metrics() -> PlainTextResponse:
        return PlainTextResponse(
            content=generate_latest(),
            media_type=CONTENT_TYPE_LATEST,
        )

    @app.get("/health")
    async def health() -> JSONResponse:
        storage_ok = True if storage_health is None else await storage_health()
        if not storage_ok:
            logger.warning("health_check_failed", component="storage")
        return JSONResponse(
            status_code=200 if storage_ok else 503,
            content={
                "status": "healthy" if storage_ok else "unhealthy",
                "storage": "up" if storage_ok else "down",
            },
        )

    return app


class MetricsServer:
    """Serves the metrics app with uvicorn in a background task."""

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 9090,
        storage_health: HealthCheck | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._storage_health = storage_health
        self._server: uvicorn.Server | None = None
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        config = uvicorn.Config(
            create_metrics_app(self._storage_health),
            host=self._host,
            port=self._port,
            log_level="warning",
            access_log=False,
        )
        self._server = uvicorn.Server(config)
        self._task = asyncio.create_task(self._server.serve())
        logger.info("metrics_server_started", host=self._host, port=self._port)

    async def stop(self) -> None:
        if self._server:
            self._server.should_exit = True

        if self._task:
            try:
                await asyncio.wait_for(self._task, timeout=5.0)
            except TimeoutError:
                self._task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._task
            self._task = None

        logger.info("metrics_server_stopped")
