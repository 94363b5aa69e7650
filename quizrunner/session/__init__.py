"""Quiz session derivation and state."""

from .builder import AnswerKeyMap, build_fresh, build_retry, build_retry_all, fisher_yates, shuffle_answers
from .state import Phase, QuizSession, SessionMode
from .timer import ManualScheduler, TickHandle, TickScheduler, TimerState, format_seconds

__all__ = [
    "AnswerKeyMap",
    "ManualScheduler",
    "Phase",
    "QuizSession",
    "SessionMode",
    "TickHandle",
    "TickScheduler",
    "TimerState",
    "build_fresh",
    "build_retry",
    "build_retry_all",
    "fisher_yates",
    "format_seconds",
    "shuffle_answers",
]
