from __future__ import annotations

import hmac

from fastapi import Depends, Header

from api.deps import get_config
from api.errors import ApiError
from stickychain.core.config import Config


def _unauthorized(code: str, message: str) -> ApiError:
    return ApiError(code=f"auth.{code}", message=message, status=401)


def require_bearer_token(
    authorization: str | None = Header(default=None, alias="Authorization"),
    config: Config = Depends(get_config),
) -> None:
    """Check `Authorization: Bearer <token>` against `api.auth_token`.

    An empty configured token turns auth off (local use, tests).
    """

    expected = config.api.auth_token
    if not expected:
        return
    if not authorization:
        raise _unauthorized("missing_token", "Missing bearer token")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("invalid_header", "Invalid authorization header")
    if not hmac.compare_digest(token.strip(), expected):
        raise _unauthorized("invalid_token", "Invalid bearer token")


AuthDep = Depends(require_bearer_token)
