"""stickychain.core.exceptions

Errors are part of the interface.

Every failure here is raised before any effect is visible. If you caught one,
nothing happened.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stickychain.core.models import ChainValidation


class StickyChainError(Exception):
    """Base exception for stickychain."""


class ConfigError(StickyChainError):
    """Configuration is missing, invalid, or inconsistent."""


class ValidationError(StickyChainError):
    """Caller input rejected before any lookup or mutation."""


class StoreError(StickyChainError):
    """Indexed store failures."""


class NotFoundError(StoreError):
    """An operation referenced an id nobody has seen."""

    def __init__(self, kind: str, entity_id: str) -> None:
        super().__init__(f"{kind} {entity_id} not found")
        self.kind = kind
        self.entity_id = entity_id


class DuplicateEntityError(StoreError):
    """Entity id already present in the store."""


class InvalidTransitionError(StickyChainError):
    """Requested state change is not in the lifecycle table."""

    def __init__(self, kind: str, current: str, requested: str, message: str | None = None) -> None:
        super().__init__(message or f"Invalid {kind} transition {current} -> {requested}")
        self.kind = kind
        self.current = current
        self.requested = requested


class ChainIntegrityError(StickyChainError):
    """The journal no longer verifies. Read-only diagnostic, never raised by append."""

    def __init__(self, result: ChainValidation) -> None:
        super().__init__(f"chain broken at record {result.broken_at}: {result.reason}")
        self.result = result
