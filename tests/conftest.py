"""Shared pytest configuration and fixtures for tests."""

import sys
import io
from datetime import datetime
from pathlib import Path

import pytest

# Fix Windows console encoding
if sys.platform == "win32":
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8')

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from snackboard.core import repository  # noqa: E402
from snackboard.core.store import Store  # noqa: E402


@pytest.fixture(autouse=True)
def temp_db(monkeypatch, tmp_path):
    """Use temporary database and data directory for all tests."""
    db_path = tmp_path / "test_snackboard.db"
    monkeypatch.setattr(repository, "DB_PATH", db_path)
    monkeypatch.setattr(repository, "DB_DIR", tmp_path)
    monkeypatch.setenv("SNACKBOARD_HOME", str(tmp_path))
    monkeypatch.delenv("SNACKBOARD_SUPABASE_URL", raising=False)
    monkeypatch.delenv("SNACKBOARD_SUPABASE_KEY", raising=False)
    yield db_path


class FakeClock:
    """Settable epoch-millisecond clock."""

    def __init__(self, now: int):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


@pytest.fixture
def clock():
    """Clock fixed at local noon on 2024-05-10."""
    return FakeClock(int(datetime(2024, 5, 10, 12, 0, 0).timestamp() * 1000))


@pytest.fixture
def store(clock):
    return Store(clock=clock)


@pytest.fixture
def changes(store):
    """Change names committed by the store, in order."""
    seen = []
    store.subscribe(seen.append)
    return seen
