from __future__ import annotations

import shutil
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

# pytest may run without installing the project; ensure repo root is importable.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from stickychain.app import Application  # noqa: E402
from stickychain.core.chain import Chain  # noqa: E402
from stickychain.core.config import Config  # noqa: E402
from stickychain.dispatcher import Dispatcher, Stores  # noqa: E402


class TickingClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


@pytest.fixture()
def temp_dir(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture()
def test_config(temp_dir: Path) -> Config:
    """Config fixture loaded from a copy of the shipped defaults."""

    cfg_dst_dir = temp_dir / "config"
    cfg_dst_dir.mkdir(parents=True, exist_ok=True)
    shutil.copy2(REPO_ROOT / "config" / "default.yaml", cfg_dst_dir / "default.yaml")

    return Config.from_yaml(cfg_dst_dir / "default.yaml")


@pytest.fixture()
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture()
def chain(clock: TickingClock) -> Chain:
    return Chain(clock=clock)


@pytest.fixture()
def dispatcher(chain: Chain, clock: TickingClock) -> Dispatcher:
    return Dispatcher(chain=chain, stores=Stores.empty(), clock=clock)


@pytest.fixture()
def app(test_config: Config) -> Application:
    return Application.create(test_config)


@pytest.fixture()
def board(dispatcher: Dispatcher):
    return dispatcher.create_board("alice", template="BASIC_KANBAN")


@pytest.fixture()
def open_project(dispatcher: Dispatcher):
    project = dispatcher.create_project("client-1", "Landing page", 1000, skills=["css"])
    return dispatcher.publish_project(project.id, "client-1")


@pytest.fixture(scope="module")
def anyio_backend() -> str:
    return "asyncio"
