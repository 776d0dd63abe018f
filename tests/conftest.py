"""
Test configuration - ensures repo root is in sys.path + isolation guards.

This allows tests to import from top-level packages (zeilumara, api, cli).
Every test gets its own ZEILUMARA_HOME so nothing touches ~/.zeilumara.
"""

import sys
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import zeilumara.*, api.*, cli.*
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from tests.fixtures import COARSE_UNITS, FixedClock  # noqa: E402
from zeilumara.conversion import ConversionEngine  # noqa: E402
from zeilumara.notifier import InMemoryNotificationCenter  # noqa: E402
from zeilumara.store import EventStore  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point ZEILUMARA_HOME at a per-test directory."""
    home = tmp_path / "zeilumara_home"
    monkeypatch.setenv("ZEILUMARA_HOME", str(home))
    return home


@pytest.fixture
def engine():
    """Default unit table, default epoch."""
    return ConversionEngine()


@pytest.fixture
def coarse_engine():
    """Coarse unit table (1 beat = 1 s) anchored at Unix zero."""
    return ConversionEngine(epoch=0.0, units=COARSE_UNITS)


@pytest.fixture
def clock():
    return FixedClock(0.0)


@pytest.fixture
def store(tmp_path):
    return EventStore(tmp_path / "data")


@pytest.fixture
def center():
    return InMemoryNotificationCenter()
