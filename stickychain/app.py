"""stickychain.app

Explicit application context. Built once, passed around, never global.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from stickychain.core.bus import EventBus
from stickychain.core.chain import Chain
from stickychain.core.config import Config
from stickychain.core.projections import ProjectionManager
from stickychain.dispatcher import Dispatcher, Stores

logger = logging.getLogger(__name__)


@dataclass
class Application:
    config: Config
    chain: Chain
    stores: Stores
    bus: EventBus
    dispatcher: Dispatcher
    lock: threading.RLock

    @classmethod
    def create(cls, config: Config | None = None, *, chain: Chain | None = None) -> Application:
        """Wire a fresh chain, empty stores and a dispatcher sharing one lock."""

        cfg = config or Config()
        lock = threading.RLock()
        chain = chain or Chain(
            genesis_message=cfg.chain.genesis_message,
            verify_genesis=cfg.chain.verify_genesis,
        )
        stores = Stores.empty()
        bus = EventBus()
        dispatcher = Dispatcher(chain=chain, stores=stores, bus=bus, kanban=cfg.kanban, lock=lock)
        logger.info("application_created", extra={"records": len(chain)})
        return cls(config=cfg, chain=chain, stores=stores, bus=bus, dispatcher=dispatcher, lock=lock)

    def projections(self) -> ProjectionManager:
        """Fold the whole chain into a fresh read model."""

        pm = ProjectionManager()
        with self.lock:
            pm.rebuild(self.chain.records())
        return pm
