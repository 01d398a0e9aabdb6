from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional
import time

from wpm.app.calculation import compute_wpm


class Verdict(Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"


@dataclass(frozen=True)
class TypingResult:
    """Scored summary of one finished typing session.

    ``timestamp`` is seconds since the epoch; 0 means unknown (records
    written before timestamps were archived).
    """

    correct_words: int = 0
    incorrect_words: int = 0
    backspaces: int = 0
    wpm: int = 0
    timestamp: int = 0
    notes: str = ""

    @classmethod
    def create(
        cls,
        correct_words: int,
        incorrect_words: int,
        backspaces: int,
        duration_seconds: float,
        timestamp: Optional[int] = None,
    ) -> "TypingResult":
        return cls(
            correct_words=correct_words,
            incorrect_words=incorrect_words,
            backspaces=backspaces,
            wpm=compute_wpm(correct_words, duration_seconds),
            timestamp=int(time.time()) if timestamp is None else timestamp,
        )

    def with_notes(self, notes: str) -> "TypingResult":
        return replace(self, notes=notes)

    def datetime(self) -> Optional[datetime]:
        if self.timestamp == 0:
            return None
        try:
            return datetime.fromtimestamp(self.timestamp).astimezone()
        except (OverflowError, OSError, ValueError):
            return None

    def __str__(self) -> str:
        local = self.datetime()
        when = str(local) if local is not None else "NO DATETIME"
        return (
            f"Result: [{when}], {self.wpm:3}wpm (correct words: {self.correct_words:3}, "
            f"incorrect words: {self.incorrect_words:3}, backspaces: {self.backspaces:3})"
        )
