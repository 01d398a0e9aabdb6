# core/chrono.py
from PySide6.QtCore import QElapsedTimer


class HighResTimer:
    """Monotonic clock for typing sessions, backed by QElapsedTimer.

    ``now()`` is seconds since the timer was created; only differences
    between two readings are meaningful.
    """

    def __init__(self):
        self.t = QElapsedTimer()
        self.t.start()

    def now(self) -> float:
        return max(0.0, self.t.nsecsElapsed() / 1_000_000_000.0)
