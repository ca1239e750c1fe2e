import pytest

from EventLog import cli


@pytest.fixture
def run(tmp_path, monkeypatch):
    monkeypatch.setenv("EVENTLOG_LOCAL_TZ", "UTC")
    db_path = tmp_path / "cli.sqlite"

    def _run(*argv):
        cli.main(["--storage", str(db_path), *argv])

    return _run

def test_unlock_and_today(run, capsys):
    run("unlock")
    run("unlock")
    capsys.readouterr()
    run("today")
    out = capsys.readouterr().out
    assert "Unlocks today: 2" in out
    assert "Last unlock:" in out

def test_tracking_pauses_foreground(run, capsys):
    run("tracking", "off")
    assert "Tracking: paused" in capsys.readouterr().out
    run("foreground")
    assert "Tracking is paused" in capsys.readouterr().out
    run("tracking", "toggle")
    assert "Tracking: tracking" in capsys.readouterr().out
    run("foreground")
    assert "Unlock recorded" in capsys.readouterr().out

def test_days_and_summary(run, capsys):
    run("days")
    assert "No unlocks recorded." in capsys.readouterr().out
    run("unlock")
    run("summary")
    assert "fewer than two unlocks" in capsys.readouterr().out
    run("unlock")
    capsys.readouterr()
    run("summary")
    assert "active 0h 0m over 2 unlocks" in capsys.readouterr().out
    run("days")
    assert "(2 unlocks)" in capsys.readouterr().out

def test_sleep_and_wake(run, capsys):
    run("sleep")
    assert "Sleep time recorded." in capsys.readouterr().out
    run("wake")
    assert "Slept 0h 0m" in capsys.readouterr().out
    run("wake")
    assert "Wake time recorded." in capsys.readouterr().out
    run("sleep-log")
    assert "sleep" in capsys.readouterr().out

def test_clear_asks_for_confirmation(run, capsys, monkeypatch):
    run("unlock")
    monkeypatch.setattr("builtins.input", lambda prompt: "n")
    run("clear", "unlock")
    assert "Cancelled." in capsys.readouterr().out
    run("today")
    assert "Unlocks today: 1" in capsys.readouterr().out

    run("clear", "unlock", "--yes")
    run("today")
    assert "Unlocks today: 0" in capsys.readouterr().out

def test_command_required(run):
    with pytest.raises(SystemExit):
        run()
