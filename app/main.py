"""
FastAPI application entrypoint for the Cliq to Jibble relay.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import router as api_router
from app.core.config import get_settings
from app.core.errors import register_exception_handlers
from app.core.logging import configure_logging
from app.dependencies import get_json_store, get_token_manager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the store and warm the Jibble token before serving requests."""
    store = get_json_store()
    logger.info("Database initialized at %s", store.path)
    await get_token_manager().warm_start()
    yield


def create_app(*, warm_start: bool = True) -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Jibble Cliq Bot Server",
        version="2.0.0",
        description="Relay between Cliq bot commands and the Jibble time-tracking API.",
        lifespan=lifespan if warm_start else None,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    # Unprefixed paths used by bots deployed against the 1.x server.
    app.include_router(api_router, include_in_schema=False)

    @app.exception_handler(404)
    async def _not_found(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": "Endpoint not found",
                "info": "Visit /api/info for available endpoints",
            },
        )

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    logger.info("Starting Jibble Cliq Bot Server on port %s", settings.port)
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()


__all__ = ["app", "create_app", "run"]
