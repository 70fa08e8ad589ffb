"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from askmyfile.api.auth import router as auth_router
from askmyfile.api.documents import router as documents_router
from askmyfile.app_logging import configure_logging
from askmyfile.containers import AppContainer
from askmyfile.domain.errors import GatewayError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    logger.info("Using processing service at %s", container.settings.upstream_base_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.container.notification_queue.start()
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(documents_router)
    app.include_router(auth_router)

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(
        request: Request, exc: GatewayError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.error.status_code, content=exc.error.to_payload()
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
