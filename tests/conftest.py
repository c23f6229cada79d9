import pytest

from wordwise.application.cache.manager import LocalCacheManager
from wordwise.infrastructure.adapters.stores.memory_store import InMemoryStore


class FakeClock:
    """Controllable epoch-millisecond clock."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def cache(memory_store, clock):
    return LocalCacheManager(memory_store, clock=clock)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Mocking HOME to a temp directory to isolate config and data
    monkeypatch.setenv("HOME", str(home))
    for var in ("WORDWISE_DATA_DIR", "WORDWISE_STORE_BACKEND", "WORDWISE_REVIEW_BACKEND"):
        monkeypatch.delenv(var, raising=False)
    return home
