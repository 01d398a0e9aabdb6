# app/errors.py
from __future__ import annotations


class WpmError(Exception):
    """Base exception for all wpm errors."""


# -------- Low level (single MessagePack value) --------
class ValueReadError(WpmError):
    """Raised when a single encoded value cannot be read from the archive."""


class UnexpectedEofError(ValueReadError):
    """The stream ended before the value was complete."""


class TypeMismatchError(ValueReadError):
    """A marker byte was found that does not match the expected type."""

    def __init__(self, expected: str, marker: int):
        super().__init__(f"expected {expected}, found marker 0x{marker:02x}")
        self.expected = expected
        self.marker = marker


class InvalidUtf8Error(ValueReadError):
    """String bytes could not be decoded as UTF-8."""


# -------- Field level (one record of a known version) --------
class StorageError(WpmError):
    """A field of an archived record could not be decoded.

    The low-level ValueReadError is kept as ``__cause__`` (and ``cause``).
    """

    field = "record"

    def __init__(self, cause: ValueReadError):
        super().__init__(f"{self.field}: {cause}")
        self.cause = cause

    @property
    def truncated(self) -> bool:
        # EOF inside a record means the last write was interrupted
        return isinstance(self.cause, UnexpectedEofError)


class MissingCorrectWords(StorageError):
    field = "correct_words"


class MissingIncorrectWords(StorageError):
    field = "incorrect_words"


class MissingBackspaces(StorageError):
    field = "backspaces"


class MissingWpm(StorageError):
    field = "wpm"


class MissingTime(StorageError):
    field = "timestamp"


class MissingNotesLength(StorageError):
    field = "notes_length"


class MissingNotes(StorageError):
    field = "notes"
