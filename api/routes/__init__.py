from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from api.routes import boards, cards, chain, health, projects
from api.schemas.common import ErrorResponse

# Documented error envelopes for routes that touch the domain.
_DOMAIN_ERRORS: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def get_api_router() -> APIRouter:
    router = APIRouter()

    router.include_router(health.router, tags=["health"])
    router.include_router(boards.router, tags=["boards"], responses=_DOMAIN_ERRORS)
    router.include_router(cards.router, tags=["cards"], responses=_DOMAIN_ERRORS)
    router.include_router(projects.router, tags=["projects"], responses=_DOMAIN_ERRORS)
    router.include_router(chain.router, tags=["chain"], responses=_DOMAIN_ERRORS)

    return router
