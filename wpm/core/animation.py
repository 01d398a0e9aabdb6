# core/animation.py
from __future__ import annotations
from dataclasses import dataclass, field

from PySide6.QtCore import QEasingCurve


# ease-in-out cubic: cubic acceleration for the first half, mirrored deceleration after
_EASING = QEasingCurve(QEasingCurve.Type.InOutCubic)


@dataclass
class Animation:
    """One-shot interpolation from ``start`` to ``end`` over ``duration`` seconds."""

    start: float
    end: float
    duration: float
    elapsed: float = field(default=0.0)

    def advance(self, dt: float):
        self.elapsed += dt

    def is_over(self) -> bool:
        return self.elapsed >= self.duration

    def progress(self) -> float:
        if self.duration <= 0.0:
            return 1.0
        return min(1.0, max(0.0, self.elapsed / self.duration))

    def current(self) -> float:
        eased = _EASING.valueForProgress(self.progress())
        return self.start + (self.end - self.start) * eased
