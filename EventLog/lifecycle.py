"""
App lifecycle signal.

The OS reports the new app state by name; only a move from background or
inactive to active counts as a foreground transition.
"""
import enum
import logging
from typing import Callable, List

log = logging.getLogger(__name__)

ForegroundHandler = Callable[[], object]


class AppState(str, enum.Enum):
    ACTIVE = "active"
    BACKGROUND = "background"
    INACTIVE = "inactive"


class AppStateMonitor:
    """Tracks the current app state and calls foreground handlers on background -> active."""

    def __init__(self, initial: str = AppState.ACTIVE):
        self.state = AppState(initial)
        self._handlers: List[ForegroundHandler] = []

    def on_foreground(self, handler: ForegroundHandler) -> Callable[[], None]:
        """Registers ``handler``. Returns a callable that unsubscribes it."""
        self._handlers.append(handler)

        def unsubscribe():
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def notify(self, new_state: str) -> bool:
        """
        Feeds the next OS state. Returns True if handlers were fired.
        Raises ValueError for an unknown state name.
        """
        try:
            next_state = AppState(new_state)
        except ValueError:
            raise ValueError(f"Unknown app state '{new_state}'") from None

        previous = self.state
        self.state = next_state
        if next_state is not AppState.ACTIVE or previous is AppState.ACTIVE:
            return False

        log.debug(f"Foreground transition {previous.value} -> {next_state.value}.")
        for handler in list(self._handlers):
            try:
                handler()
            except Exception as e:
                log.error(f"Foreground handler {handler!r} failed: {e}", exc_info=True)
        return True


def bind_unlock_tracking(store, monitor: AppStateMonitor) -> Callable[[], None]:
    """Records an unlock on ``store`` for every foreground transition while tracking is on."""
    return monitor.on_foreground(store.record_foreground)
