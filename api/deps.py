from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from fastapi import Request

from stickychain.app import Application
from stickychain.core.config import Config
from stickychain.dispatcher import Dispatcher


@lru_cache
def _repo_root() -> Path:
    # Assume running from repo root (uvicorn started there). Fallback to parent of this file.
    here = Path(__file__).resolve()
    for p in [Path.cwd(), here.parent.parent]:
        if (p / "config" / "default.yaml").exists():
            return p
    return Path.cwd()


def load_config() -> Config:
    return Config.load(_repo_root())


def get_config(request: Request) -> Config:
    cfg = getattr(request.app.state, "config", None)
    if cfg is None:
        cfg = request.app.state.config = load_config()
    return cfg


def get_application(request: Request) -> Application:
    # Lifespan builds it for a served app; ASGI test clients skip lifespan.
    application = getattr(request.app.state, "application", None)
    if application is None:
        application = request.app.state.application = Application.create(get_config(request))
    return application


def get_dispatcher(request: Request) -> Dispatcher:
    return get_application(request).dispatcher
