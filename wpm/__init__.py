"""wpm: timed typing-speed sessions and their results archive."""

from wpm.app.state import TypingResult, Verdict
from wpm.core.animation import Animation
from wpm.services.typing_session import TypingSession, practice_session
from wpm.services.typing_state import TypingState
from wpm.utils.archive import CURRENT_VERSION, ArchiveContents, ResultArchive, append_result, read_all

__all__ = [
    "Animation",
    "ArchiveContents",
    "CURRENT_VERSION",
    "ResultArchive",
    "TypingResult",
    "TypingSession",
    "TypingState",
    "Verdict",
    "append_result",
    "practice_session",
    "read_all",
]
