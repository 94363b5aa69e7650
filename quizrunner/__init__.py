"""quizrunner.

Load multiple-choice questions from a JSON document, run timed or untimed
quiz sessions with shuffling, bookmarking, review and retry, and keep a
capped history of graded attempts.
"""

from .app import QuizApp
from .config import AppConfig, Settings, default_app_config
from .data import Question, QuestionStore, available_topics, filter_by_topic, load_questions
from .errors import (
    ConfirmationRequired,
    EmptySetError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    QuizError,
    ValidationError,
)
from .history import HistoryEntry, HistoryStore
from .scoring import GradeResult, WrongAnswerRecord, grade
from .session import QuizSession, SessionMode, build_fresh, build_retry, build_retry_all
from .utils import set_determinism, setup_logging

__all__ = [
    "__version__",
    "AppConfig",
    "ConfirmationRequired",
    "EmptySetError",
    "GradeResult",
    "HistoryEntry",
    "HistoryStore",
    "InvalidStateError",
    "NotFoundError",
    "PersistenceError",
    "Question",
    "QuestionStore",
    "QuizApp",
    "QuizError",
    "QuizSession",
    "SessionMode",
    "Settings",
    "ValidationError",
    "WrongAnswerRecord",
    "available_topics",
    "build_fresh",
    "build_retry",
    "build_retry_all",
    "default_app_config",
    "filter_by_topic",
    "grade",
    "load_questions",
    "set_determinism",
    "setup_logging",
]

__version__ = "0.1.0"
