"""Quiz session state machine.

Phases run ``SETUP -> ACTIVE -> SUBMITTED``; ``REVIEWING`` is entered from
and returns to ``SUBMITTED``. ``abandon`` returns to ``SETUP`` from anywhere.
The session owns its countdown handle and stops it before starting another
one or leaving ``ACTIVE``.
"""

from __future__ import annotations

import enum
import logging
from typing import Callable, List, Optional, Set, Union

from ..data.schemas import Question, QuestionSet, clone_set
from ..errors import ConfirmationRequired, EmptySetError, InvalidStateError
from ..scoring.grading import GradeResult, grade
from .timer import ManualScheduler, TickHandle, TickScheduler, TimerState

logger = logging.getLogger(__name__)


class Phase(str, enum.Enum):
    SETUP = "setup"
    ACTIVE = "active"
    SUBMITTED = "submitted"
    REVIEWING = "reviewing"


class SessionMode(str, enum.Enum):
    NORMAL = "normal"
    RETRY = "retry"


SubmitOutcome = Union[GradeResult, ConfirmationRequired]
SubmitListener = Callable[["QuizSession", GradeResult], None]


class QuizSession:
    """State of one quiz attempt and the commands that change it."""

    def __init__(self, scheduler: Optional[TickScheduler] = None):
        self.scheduler = scheduler if scheduler is not None else ManualScheduler()
        self.phase = Phase.SETUP
        self.mode = SessionMode.NORMAL
        self.working_set: QuestionSet = []
        self.current_index = 0
        self.user_answers: List[Optional[int]] = []
        self.bookmarks: Set[int] = set()
        self.timer: Optional[TimerState] = None
        self.result: Optional[GradeResult] = None
        self._tick_handle: Optional[TickHandle] = None
        self._listeners: List[SubmitListener] = []

    def add_submit_listener(self, listener: SubmitListener) -> None:
        """Call ``listener(session, result)`` after every submission, forced or not."""
        self._listeners.append(listener)

    # -- lifecycle -------------------------------------------------------

    def start(
        self,
        working_set: QuestionSet,
        timer_limit_seconds: Optional[int] = None,
        mode: SessionMode = SessionMode.NORMAL,
    ) -> None:
        """Begin a new attempt on ``working_set``.

        Raises:
            EmptySetError: If the working set is empty; the session is unchanged
        """
        if not working_set:
            raise EmptySetError("Cannot start a session without questions")
        if timer_limit_seconds is not None and timer_limit_seconds <= 0:
            raise ValueError(f"Timer limit must be positive, got {timer_limit_seconds}")

        self.stop_timer()
        self.working_set = clone_set(working_set)
        self.mode = SessionMode(mode)
        self.current_index = 0
        self.user_answers = [None] * len(self.working_set)
        self.bookmarks = set()
        self.result = None
        self.timer = None
        if timer_limit_seconds is not None:
            self.timer = TimerState(limit_seconds=timer_limit_seconds, remaining_seconds=timer_limit_seconds)
            self._tick_handle = self.scheduler.schedule(self.tick, 1)
        self.phase = Phase.ACTIVE
        logger.info(
            "Session started with %d questions",
            len(self.working_set),
            extra={"session_mode": self.mode.value},
        )

    def abandon(self) -> None:
        """Stop the timer and discard the attempt without grading it."""
        self.stop_timer()
        self.working_set = []
        self.user_answers = []
        self.bookmarks = set()
        self.current_index = 0
        self.timer = None
        self.result = None
        self.phase = Phase.SETUP

    def stop_timer(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None

    @property
    def timer_running(self) -> bool:
        return self._tick_handle is not None

    # -- answering and navigation ---------------------------------------

    def require_phase(self, *phases: Phase) -> None:
        if self.phase not in phases:
            names = ", ".join(p.value for p in phases)
            raise InvalidStateError(f"Operation requires phase {names}; session is {self.phase.value}")

    @property
    def current_question(self) -> Question:
        self.require_phase(Phase.ACTIVE, Phase.SUBMITTED, Phase.REVIEWING)
        return self.working_set[self.current_index]

    def select_answer(self, choice_index: int) -> None:
        self.require_phase(Phase.ACTIVE)
        n_answers = len(self.working_set[self.current_index].answers)
        if not (0 <= choice_index < n_answers):
            raise ValueError(f"Answer index {choice_index} out of range for {n_answers} answers")
        self.user_answers[self.current_index] = choice_index

    def go_to(self, position: int) -> None:
        self.require_phase(Phase.ACTIVE, Phase.REVIEWING)
        if not (0 <= position < len(self.working_set)):
            raise ValueError(f"Position {position} out of range for {len(self.working_set)} questions")
        self.current_index = position

    def next(self) -> None:
        self.require_phase(Phase.ACTIVE, Phase.REVIEWING)
        if self.current_index < len(self.working_set) - 1:
            self.current_index += 1

    def prev(self) -> None:
        self.require_phase(Phase.ACTIVE, Phase.REVIEWING)
        if self.current_index > 0:
            self.current_index -= 1

    def toggle_bookmark(self) -> bool:
        """Flip the bookmark on the current position and return the new state."""
        self.require_phase(Phase.ACTIVE)
        if self.current_index in self.bookmarks:
            self.bookmarks.discard(self.current_index)
            return False
        self.bookmarks.add(self.current_index)
        return True

    @property
    def unanswered(self) -> List[int]:
        return [i for i, a in enumerate(self.user_answers) if a is None]

    @property
    def answered_count(self) -> int:
        return len(self.user_answers) - len(self.unanswered)

    # -- timing and submission ------------------------------------------

    def tick(self) -> Optional[GradeResult]:
        """Advance the countdown by one second.

        When it reaches zero the attempt is submitted without confirmation
        and the grade result is returned.
        """
        if self.phase is not Phase.ACTIVE or self.timer is None:
            self.stop_timer()
            return None
        self.timer.remaining_seconds = max(0, self.timer.remaining_seconds - 1)
        if self.timer.expired:
            logger.info("Time expired; submitting")
            return self._finish(time_expired=True)
        return None

    def submit(self, force_confirm_unanswered: bool = False) -> SubmitOutcome:
        """Grade the attempt, or ask for confirmation if positions are unanswered."""
        self.require_phase(Phase.ACTIVE)
        missing = self.unanswered
        if missing and not force_confirm_unanswered:
            return ConfirmationRequired(unanswered=tuple(missing))
        return self._finish(time_expired=False)

    def _finish(self, time_expired: bool) -> GradeResult:
        self.stop_timer()
        time_spent = self.timer.elapsed_seconds if self.timer is not None else None
        self.result = grade(
            self.working_set,
            self.user_answers,
            time_expired=time_expired,
            time_spent_seconds=time_spent,
        )
        self.phase = Phase.SUBMITTED
        logger.info(
            "Session submitted: %d/%d correct",
            self.result.correct_count,
            self.result.total,
            extra={"session_mode": self.mode.value, "score": self.result.score},
        )
        for listener in self._listeners:
            listener(self, self.result)
        return self.result

    # -- review ---------------------------------------------------------

    def enter_review(self) -> None:
        self.require_phase(Phase.SUBMITTED)
        self.phase = Phase.REVIEWING
        self.current_index = 0

    def exit_review(self) -> None:
        self.require_phase(Phase.REVIEWING)
        self.phase = Phase.SUBMITTED
