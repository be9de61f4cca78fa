from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from stickychain.core.exceptions import (
    DuplicateEntityError,
    InvalidTransitionError,
    NotFoundError,
    StickyChainError,
    ValidationError,
)


class ApiError(Exception):
    def __init__(self, code: str, message: str, status: int = 400, **extra: object) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status
        self.extra = extra


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    body = {"error": {"code": exc.code, "message": exc.message, **exc.extra}}
    return JSONResponse(status_code=exc.status, content=body)


def to_api_error(exc: StickyChainError) -> ApiError:
    if isinstance(exc, NotFoundError):
        return ApiError("not_found", str(exc), 404, kind=exc.kind, id=exc.entity_id)
    if isinstance(exc, InvalidTransitionError):
        return ApiError(
            "invalid_transition",
            str(exc),
            409,
            kind=exc.kind,
            current=exc.current,
            requested=exc.requested,
        )
    if isinstance(exc, DuplicateEntityError):
        return ApiError("duplicate", str(exc), 409)
    if isinstance(exc, ValidationError):
        return ApiError("validation", str(exc), 400)
    return ApiError("internal", str(exc), 500)


async def domain_error_handler(request: Request, exc: StickyChainError) -> JSONResponse:
    return await api_error_handler(request, to_api_error(exc))
