# services/typing_session.py
from __future__ import annotations
from typing import List, Optional, Protocol, Sequence
import math

from wpm.app.state import TypingResult, Verdict
from wpm.core.chrono import HighResTimer
from wpm.utils.file_handler import load_words


class Clock(Protocol):
    def now(self) -> float: ...


class TypingSession:
    """Scores a timed typing exercise one keystroke at a time.

    Characters accumulate in ``input_buffer`` until a space (or the deadline)
    closes the word, which is then compared case-sensitively with the next
    target word and recorded as a Verdict. The clock starts on the first
    typed character. Nothing here is preemptive: the caller polls
    ``is_done()`` and calls ``end()``.
    """

    def __init__(
        self,
        target_words: Sequence[str],
        duration: Optional[float] = None,
        clock: Optional[Clock] = None,
    ):
        if duration is not None and duration <= 0:
            raise ValueError(f"duration must be positive, got {duration!r}")
        self._target_words = tuple(target_words)
        self.duration = duration
        self.clock = clock or HighResTimer()

        self._next_word_index = 0
        self._input_buffer = ""
        self._verdicts: List[Verdict] = []
        self._backspace_count = 0
        self.started_at: Optional[float] = None
        self.ended_at: Optional[float] = None
        self.ended = False

    # -------- read access for rendering --------
    @property
    def target_words(self) -> tuple:
        return self._target_words

    @property
    def verdicts(self) -> tuple:
        return tuple(self._verdicts)

    @property
    def input_buffer(self) -> str:
        return self._input_buffer

    @property
    def next_word_index(self) -> int:
        return self._next_word_index

    @property
    def backspace_count(self) -> int:
        return self._backspace_count

    def words_text(self) -> str:
        return " ".join(self._target_words)

    # -------- input --------
    def type_character(self, ch: str) -> bool:
        """Feed one character. Returns True when it completed a word."""
        if self.ended or self._next_word_index >= len(self._target_words):
            return False
        self._input_buffer += ch
        if self.started_at is None:
            self.started_at = self.clock.now()
        return self._check_word_boundary()

    def backspace(self):
        if self.ended or not self._input_buffer:
            return
        self._input_buffer = self._input_buffer[:-1]
        self._backspace_count += 1
        self._check_word_boundary()

    def _check_word_boundary(self) -> bool:
        if not (self._input_buffer.endswith(" ") or self.is_done() is True):
            return False
        entered = self._input_buffer.strip()
        if not entered:
            # lone space: nothing to score yet
            return False
        correct = entered == self._current_target()
        self._verdicts.append(Verdict.CORRECT if correct else Verdict.INCORRECT)
        self._input_buffer = ""
        self._next_word_index += 1
        return True

    # -------- timing --------
    def elapsed(self) -> Optional[float]:
        if self.started_at is None:
            return None
        return max(0.0, self.clock.now() - self.started_at)

    def is_done(self) -> Optional[bool]:
        if self.duration is None or self.started_at is None:
            return None
        return self.elapsed() >= self.duration

    def remaining_time_label(self) -> Optional[str]:
        if self.is_done() is not False:
            return None
        remaining = max(0, math.floor(self.duration - self.elapsed()))
        mins, secs = divmod(remaining, 60)
        return f"{mins:02d}:{secs:02d}"

    def end(self):
        if self.ended:
            return
        # flushes a half-typed word when the deadline has been reached
        self._check_word_boundary()
        self.ended_at = self.clock.now()
        self.ended = True

    # -------- scoring --------
    def _current_target(self) -> Optional[str]:
        if self._next_word_index >= len(self._target_words):
            return None
        return self._target_words[self._next_word_index]

    def current_prefix_matches(self) -> bool:
        target = self._current_target()
        return target is not None and target.startswith(self._input_buffer)

    def result(self) -> TypingResult:
        if self.duration is None:
            raise RuntimeError("result() needs a session with a configured duration")
        correct = sum(1 for v in self._verdicts if v is Verdict.CORRECT)
        incorrect = len(self._verdicts) - correct
        return TypingResult.create(correct, incorrect, self._backspace_count, self.duration)


def practice_session(
    duration: Optional[float],
    words: Optional[Sequence[str]] = None,
    clock: Optional[Clock] = None,
) -> TypingSession:
    """A session over the bundled practice passage unless ``words`` is given."""
    return TypingSession(words if words is not None else load_words(), duration, clock)
