"""Error taxonomy for quizrunner."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


class QuizError(Exception):
    """Base exception for quizrunner errors."""
    pass


class ValidationError(QuizError):
    """Raised when an imported document does not match the question schema."""

    max_reported = 3

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationError":
        """Build an error reporting the total count and the first few problems."""
        head = "\n".join(errors[: cls.max_reported])
        return cls(f"{len(errors)} invalid question(s):\n{head}", errors=errors)


class EmptySetError(QuizError):
    """Raised when a filter or retry yields no questions to start a session with."""
    pass


class NotFoundError(QuizError, KeyError):
    """Raised when a question id does not resolve in the store."""

    def __init__(self, question_id: str):
        super().__init__(f"Question not found: {question_id}")
        self.question_id = question_id

    def __str__(self) -> str:
        return self.args[0]


class PersistenceError(QuizError):
    """Raised when settings or history cannot be read from or written to storage."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class InvalidStateError(QuizError):
    """Raised when a session operation is called in the wrong phase."""
    pass


@dataclass(frozen=True)
class ConfirmationRequired:
    """Signal returned by submit when positions are still unanswered.

    Not a failure: the caller confirms with the user and submits again with
    ``force_confirm_unanswered=True``.
    """
    unanswered: Tuple[int, ...] = field(default_factory=tuple)

    @property
    def count(self) -> int:
        return len(self.unanswered)
