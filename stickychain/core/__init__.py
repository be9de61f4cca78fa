"""stickychain.core

Core primitives: the journal, the stores, the bus.

If a module needs to exist, it should probably depend only on this package.
"""

from .actions import ActionType, SubjectKind
from .bus import EventBus, Notification
from .chain import Chain
from .config import Config
from .exceptions import (
    ChainIntegrityError,
    ConfigError,
    DuplicateEntityError,
    InvalidTransitionError,
    NotFoundError,
    StickyChainError,
    StoreError,
    ValidationError,
)
from .models import BreakReason, ChainStats, ChainValidation, HashRecord
from .store import IndexedStore, IndexSpec
from .time import parse_dt, utc_now

__all__ = [
    "ActionType",
    "BreakReason",
    "Chain",
    "ChainIntegrityError",
    "ChainStats",
    "ChainValidation",
    "Config",
    "ConfigError",
    "DuplicateEntityError",
    "EventBus",
    "HashRecord",
    "IndexSpec",
    "IndexedStore",
    "InvalidTransitionError",
    "Notification",
    "NotFoundError",
    "StickyChainError",
    "StoreError",
    "SubjectKind",
    "ValidationError",
    "parse_dt",
    "utc_now",
]
