import pytest
from datetime import datetime, timedelta, timezone

from EventLog.config import Settings
from EventLog.storage import MemoryKeyValueStorage


class FakeClock:
    """Callable clock the tests move by hand."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def set(self, value: datetime):
        self.now = value

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 6, 12, 10, 0, 0, tzinfo=timezone.utc))

@pytest.fixture
def settings():
    return Settings(local_tz="UTC", _env_file=None)

@pytest.fixture
def storage():
    return MemoryKeyValueStorage()
