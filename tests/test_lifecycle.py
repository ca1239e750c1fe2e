from unittest.mock import MagicMock

import pytest

from EventLog.lifecycle import AppState, AppStateMonitor, bind_unlock_tracking
from EventLog.store import EventLogStore


@pytest.fixture
def monitor():
    return AppStateMonitor()

@pytest.mark.parametrize("previous", ["background", "inactive"])
def test_foreground_transition_fires(monitor, previous):
    handler = MagicMock()
    monitor.on_foreground(handler)
    monitor.notify(previous)
    assert monitor.notify("active") is True
    handler.assert_called_once_with()
    assert monitor.state is AppState.ACTIVE

def test_other_transitions_do_not_fire(monitor):
    handler = MagicMock()
    monitor.on_foreground(handler)
    assert monitor.notify("active") is False
    assert monitor.notify("inactive") is False
    assert monitor.notify("background") is False
    handler.assert_not_called()

def test_initial_state_can_be_background():
    monitor = AppStateMonitor(initial="background")
    handler = MagicMock()
    monitor.on_foreground(handler)
    monitor.notify("active")
    handler.assert_called_once()

def test_unknown_state_rejected(monitor):
    with pytest.raises(ValueError):
        monitor.notify("suspended")
    assert monitor.state is AppState.ACTIVE

def test_unsubscribe(monitor):
    handler = MagicMock()
    unsubscribe = monitor.on_foreground(handler)
    unsubscribe()
    unsubscribe()
    monitor.notify("background")
    monitor.notify("active")
    handler.assert_not_called()

def test_failing_handler_does_not_block_others(monitor):
    broken = MagicMock(side_effect=RuntimeError("boom"))
    healthy = MagicMock()
    monitor.on_foreground(broken)
    monitor.on_foreground(healthy)
    monitor.notify("background")
    monitor.notify("active")
    healthy.assert_called_once()

def test_bind_unlock_tracking_records_while_tracking(storage, settings, clock):
    store = EventLogStore(storage, settings, clock=clock)
    monitor = AppStateMonitor()
    bind_unlock_tracking(store, monitor)

    monitor.notify("background")
    monitor.notify("active")
    assert len(store.events) == 1

    store.set_tracking(False)
    clock.advance(minutes=1)
    monitor.notify("inactive")
    monitor.notify("active")
    assert len(store.events) == 1

    store.set_tracking(True)
    clock.advance(minutes=1)
    monitor.notify("background")
    monitor.notify("active")
    assert len(store.events) == 2
