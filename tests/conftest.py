import logging
import sys
from pathlib import Path

import httpx
import pytest

# Allow `import quickmarks` without installing the package.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from quickmarks import store, system  # noqa: E402
from quickmarks.actions import ActionContext  # noqa: E402
from quickmarks.config import Settings  # noqa: E402
from quickmarks.model import StoreState  # noqa: E402


@pytest.fixture(autouse=True)
def _block_network_and_processes(monkeypatch):
    """Tests must never reach the network or launch browsers."""

    def _no_network(*_args, **_kwargs):
        raise AssertionError("network access attempted during tests")

    def _no_spawn(*_args, **_kwargs):
        raise AssertionError("process spawn attempted during tests")

    monkeypatch.setattr(httpx.Client, "send", _no_network)
    monkeypatch.setattr(system.subprocess, "Popen", _no_spawn)


@pytest.fixture(autouse=True)
def _restore_root_logging():
    # cli.main() reconfigures the root logger for the whole process.
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(autouse=True)
def notifications(monkeypatch):
    sent = []

    def _record(title, message, **_kwargs):
        sent.append((title, message))

    monkeypatch.setattr(system, "notify", _record)
    return sent


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(store_dir=str(tmp_path / "store"), open_delay_ms=0)


@pytest.fixture
def ctx(settings: Settings) -> ActionContext:
    return ActionContext.from_settings(settings)


@pytest.fixture
def github_state() -> StoreState:
    state = StoreState()
    b = store.add_bookmark(state, "GitHub", "https://github.com")
    store.add_group(state, "Dev", [b.id])
    return state
