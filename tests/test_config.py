from zoneinfo import ZoneInfo

from EventLog.config import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("EVENTLOG_UNLOCK_RETENTION", raising=False)
    settings = Settings(_env_file=None)
    assert settings.unlock_retention == 1000
    assert settings.sleep_close_stale_open is False

def test_env_overrides(monkeypatch):
    monkeypatch.setenv("EVENTLOG_LOCAL_TZ", "America/Vancouver")
    monkeypatch.setenv("EVENTLOG_UNLOCK_RETENTION", "50")
    settings = Settings(_env_file=None)
    assert settings.local_tz == "America/Vancouver"
    assert settings.unlock_retention == 50

def test_unknown_timezone_falls_back_to_utc():
    settings = Settings(local_tz="Mars/Olympus_Mons", _env_file=None)
    assert settings.get_local_timezone() == ZoneInfo("UTC")
