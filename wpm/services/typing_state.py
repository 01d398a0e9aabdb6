# services/typing_state.py
from __future__ import annotations
from typing import Iterable, Optional

from wpm.core.animation import Animation

LINE_SCROLL_SECONDS = 1.5


class TypingState:
    """Which words of the reference text are visible, and how far to scroll.

    Line starts come from the text-layout collaborator: the indices of the
    words that begin a new wrapped line (the first line is implicit).
    """

    def __init__(self, line_start_word_indices: Iterable[int], num_words: int, line_height: float):
        self.line_start_word_indices = tuple(sorted(set(line_start_word_indices)))
        self.num_words = num_words
        self.line_height = line_height
        self.current_word_index = 0
        self.word_index_at_start_of_line = 0
        self.word_index_at_start_of_previous_line = 0
        self.animation: Optional[Animation] = None

    @property
    def num_lines(self) -> int:
        return len(self.line_start_word_indices)

    def advance(self, delta_seconds: float):
        if self.animation is None:
            return
        self.animation.advance(delta_seconds)
        if self.animation.is_over():
            self.animation = None

    def notify_word_advanced(self):
        if self.num_lines == 0:
            raise ValueError("there should be more than zero lines")
        if self.num_words <= 0:
            raise ValueError("there should be more than zero words")
        if self.current_word_index >= self.num_words - 1:
            return
        self.current_word_index += 1
        if self.current_word_index in self.line_start_word_indices:
            if self.line_height <= 0:
                raise ValueError("line_height should be positive")
            self.animation = Animation(0.0, self.line_height, LINE_SCROLL_SECONDS)
            self.word_index_at_start_of_previous_line = self.word_index_at_start_of_line
            self.word_index_at_start_of_line = self.current_word_index

    def skip_word_count(self) -> int:
        # keep the old line on screen while it scrolls away
        if self.animation is not None:
            return self.word_index_at_start_of_previous_line
        return max(0, self.word_index_at_start_of_line)

    def vertical_offset(self) -> float:
        if self.animation is None:
            return 0.0
        return self.animation.current()
