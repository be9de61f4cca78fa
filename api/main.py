from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.deps import load_config
from api.errors import ApiError, api_error_handler, domain_error_handler
from api.routes import get_api_router
from stickychain import __version__
from stickychain.app import Application
from stickychain.core.config import Config
from stickychain.core.exceptions import StickyChainError
from stickychain.core.logging import configure_logging

logger = logging.getLogger("stickychain.api")


def create_app(config: Config | None = None) -> FastAPI:
    start = time.monotonic()
    config = config or load_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.started_at = start
        configure_logging(app.state.config.logging)

        if getattr(app.state, "application", None) is None:
            app.state.application = Application.create(app.state.config)
        if not app.state.config.api.auth_token:
            logger.warning("api_auth_disabled")

        yield

        logger.info("api_stopped", extra={"records": len(app.state.application.chain)})

    openapi_tags = [
        {"name": "health", "description": "Liveness and version metadata."},
        {"name": "boards", "description": "Kanban boards built from templates."},
        {"name": "cards", "description": "Card create, move, edit, assign and delete."},
        {"name": "projects", "description": "Marketplace projects, proposals and milestones."},
        {"name": "chain", "description": "Journal validation, statistics and replay."},
    ]

    app = FastAPI(
        title="stickychain API",
        description="Kanban and marketplace on a hash-chained journal",
        version=__version__,
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.started_at = start

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StickyChainError, domain_error_handler)

    # CORS: only enable if origins explicitly configured
    if config.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(get_api_router(), prefix="/api/v1")
    return app


# Module-level app for uvicorn (e.g. `uvicorn api.main:app`).
app = create_app()
