from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Sequence
import math

if TYPE_CHECKING:
    from wpm.app.state import TypingResult


def compute_wpm(correct_words: int, duration_seconds: float) -> int:
    """
    WPM = floor(correct words / (duration / 60)).
    Uses the configured test duration, not the time actually spent typing.
    """
    if duration_seconds <= 0:
        raise ValueError(f"duration must be positive, got {duration_seconds!r}")
    return math.floor(correct_words / (duration_seconds / 60.0))


def smooth(values: Sequence[float], factor: float = 0.25) -> List[float]:
    out, last = [], None
    for v in values:
        last = v if last is None else last + factor * (v - last)
        out.append(last)
    return out


def by_time(results: Sequence["TypingResult"]) -> List["TypingResult"]:
    # undated legacy records sort first; ties keep file order
    return sorted(results, key=lambda r: r.timestamp)


def wpm_trend(results: Sequence["TypingResult"], factor: float = 0.25) -> List[float]:
    """Exponentially smoothed WPM, oldest result first."""
    return smooth([float(r.wpm) for r in by_time(results)], factor)


@dataclass
class HistorySummary:
    count: int
    best_wpm: int
    average_wpm: float
    last_wpm: int
    trend_wpm: float


def summarize(results: Sequence["TypingResult"]) -> HistorySummary:
    if not results:
        return HistorySummary(count=0, best_wpm=0, average_wpm=0.0, last_wpm=0, trend_wpm=0.0)
    ordered = by_time(results)
    trend = wpm_trend(ordered)
    return HistorySummary(
        count=len(ordered),
        best_wpm=max(r.wpm for r in ordered),
        average_wpm=sum(r.wpm for r in ordered) / len(ordered),
        last_wpm=ordered[-1].wpm,
        trend_wpm=trend[-1],
    )
