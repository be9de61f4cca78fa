"""stickychain.core.config

Three config surfaces only:
1) `config/default.yaml`
2) `config/user.yaml` (optional overlay, merged over the default)
3) Environment variables (`STICKYCHAIN_` prefix, `__` for nesting)

Everything else is derived.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from stickychain.core.exceptions import ConfigError


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


class ChainConfig(BaseModel):
    genesis_message: str = "Genesis Block"
    # Record 0 is skipped by validate() unless this is set.
    verify_genesis: bool = False


class KanbanConfig(BaseModel):
    default_template: Literal["BASIC_KANBAN", "SDLC", "BUG_TRACKER", "FEATURE_DEV"] = "BASIC_KANBAN"
    max_title_length: int = 200

    @field_validator("max_title_length")
    @classmethod
    def max_title_length_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_title_length must be >= 1")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = False


class ApiConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = 5060
    auth_token: str = ""
    cors_origins: list[str] = Field(default_factory=list)


class Config(BaseSettings):
    """Root configuration. Single source of truth."""

    chain: ChainConfig = Field(default_factory=ChainConfig)
    kanban: KanbanConfig = Field(default_factory=KanbanConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)

    model_config = {"env_prefix": "STICKYCHAIN_", "env_nested_delimiter": "__"}

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        try:
            raw = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Config file is not valid YAML: {path}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"Config file must contain a mapping: {path}")

        # User overlay lives next to the default.
        user_path = path.parent / "user.yaml"
        if user_path != path and user_path.exists():
            user_data = yaml.safe_load(user_path.read_text()) or {}
            if isinstance(user_data, dict):
                raw = _deep_merge(raw, user_data)

        return cls(**raw)

    @classmethod
    def load(cls, repo_root: Path | None = None) -> Config:
        """Default + user overlay if the repo ships a config dir; bare defaults otherwise."""

        root = repo_root or Path.cwd()
        default_path = root / "config" / "default.yaml"
        if not default_path.exists():
            return cls()
        return cls.from_yaml(default_path)
