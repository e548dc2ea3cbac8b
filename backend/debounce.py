import time

from config import REEVALUATE_DEBOUNCE_MS


class ReEvaluationDebouncer:
    """
    Trailing-edge coalescer for re-evaluation after answer edits.

    The UI calls touch() on every edit and polls run_if_due() from its event
    loop; the callback runs once per burst, after `window_ms` without edits.
    The clock is injectable so callers and tests control time.
    """

    def __init__(self, window_ms: int = REEVALUATE_DEBOUNCE_MS, clock=time.monotonic):
        self.window = max(0, int(window_ms)) / 1000.0
        self._clock = clock
        self._last_edit: float | None = None

    @property
    def pending(self) -> bool:
        return self._last_edit is not None

    def touch(self) -> None:
        self._last_edit = self._clock()

    def is_due(self) -> bool:
        if self._last_edit is None:
            return False
        return self._clock() - self._last_edit >= self.window

    def run_if_due(self, callback):
        if not self.is_due():
            return None
        self._last_edit = None
        return callback()

    def flush(self, callback):
        """Run a pending re-evaluation now, regardless of the window."""
        if self._last_edit is None:
            return None
        self._last_edit = None
        return callback()

    def cancel(self) -> None:
        self._last_edit = None
