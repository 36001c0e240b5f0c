"""Shared test fixtures for the eventlog test suite."""

from collections.abc import Callable, Generator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from eventlog import Event, EventLog

# A timestamp with sub-second digits so precision truncation is observable
CLOCK_START = datetime(2024, 5, 17, 9, 30, 15, 123456, tzinfo=UTC)


class FakeClock:
    """Deterministic clock; each call returns the current value then ticks."""

    def __init__(self, start: datetime = CLOCK_START, step: timedelta = timedelta(seconds=1)) -> None:
        self.now = start
        self.step = step
        self.calls: list[datetime] = []

    def __call__(self) -> datetime:
        value = self.now
        self.calls.append(value)
        self.now = value + self.step
        return value


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Reset cached settings and TOML state around each test."""
    from eventlog.config import get_settings
    from eventlog.config.settings import set_toml_config

    get_settings.cache_clear()
    set_toml_config({})
    yield
    get_settings.cache_clear()
    set_toml_config({})


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "events.csv"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def event_log(log_path: Path, clock: FakeClock) -> Generator[EventLog, None, None]:
    """An open log on a fresh file, closed after the test."""
    log = EventLog.open(log_path, clock=clock)
    yield log
    log.close()


@pytest.fixture
def make_event() -> Callable[..., Event]:
    """Factory fixture for events with sensible defaults."""

    def _make_event(event_id: str = "evt-1", *data: str, **overrides: str) -> Event:
        fields = {
            "id": event_id,
            "issuer": "alice",
            "scope": "invoice/17",
            "action": "approve",
        }
        fields.update(overrides)
        return Event(**fields, data=list(data))

    return _make_event
