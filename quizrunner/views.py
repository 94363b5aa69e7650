"""Plain view data handed to the presentation layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .errors import InvalidStateError
from .scoring.grading import GradeResult
from .session.state import Phase, QuizSession
from .session.timer import format_seconds


@dataclass(frozen=True)
class NavItem:
    position: int
    answered: bool
    bookmarked: bool
    current: bool
    status: Optional[str] = None  # correct | incorrect | unanswered, review only


@dataclass(frozen=True)
class QuestionView:
    position: int
    total: int
    question_id: str
    text: str
    answers: Tuple[str, ...]
    selected: Optional[int]
    bookmarked: bool
    answered_count: int
    previous_answer: Optional[int] = None
    remaining_seconds: Optional[int] = None
    nav: List[NavItem] = field(default_factory=list)

    @property
    def is_first(self) -> bool:
        return self.position == 0

    @property
    def is_last(self) -> bool:
        return self.position == self.total - 1

    @property
    def progress_percent(self) -> float:
        return (self.position + 1) / self.total * 100

    @property
    def timer_display(self) -> Optional[str]:
        if self.remaining_seconds is None:
            return None
        return format_seconds(self.remaining_seconds)


@dataclass(frozen=True)
class ReviewView:
    position: int
    total: int
    text: str
    answers: Tuple[str, ...]
    user_answer: Optional[int]
    correct_index: int
    explanation: Optional[str]
    nav: List[NavItem] = field(default_factory=list)

    @property
    def is_correct(self) -> bool:
        return self.user_answer == self.correct_index


@dataclass(frozen=True)
class WrongAnswerView:
    position: int
    question_id: str
    text: str
    user_answer_text: Optional[str]  # None when unanswered
    correct_answer_text: str


@dataclass(frozen=True)
class ResultView:
    result: GradeResult
    wrong_answers: List[WrongAnswerView]
    retry_session: bool

    @property
    def score(self) -> float:
        return self.result.score

    @property
    def message(self) -> str:
        return self.result.message

    @property
    def can_retry_wrong(self) -> bool:
        return bool(self.result.wrong_records)


def _status(session: QuizSession, position: int) -> str:
    answer = session.user_answers[position]
    if answer is None:
        return "unanswered"
    return "correct" if answer == session.working_set[position].correct_index else "incorrect"


def question_view(session: QuizSession) -> QuestionView:
    q = session.current_question
    nav = [
        NavItem(
            position=i,
            answered=a is not None,
            bookmarked=i in session.bookmarks,
            current=i == session.current_index,
        )
        for i, a in enumerate(session.user_answers)
    ]
    return QuestionView(
        position=session.current_index,
        total=len(session.working_set),
        question_id=q.id,
        text=q.text,
        answers=q.answers,
        selected=session.user_answers[session.current_index],
        bookmarked=session.current_index in session.bookmarks,
        answered_count=session.answered_count,
        previous_answer=q.previous_answer,
        remaining_seconds=session.timer.remaining_seconds if session.timer is not None else None,
        nav=nav,
    )


def review_view(session: QuizSession) -> ReviewView:
    q = session.current_question
    nav = [
        NavItem(
            position=i,
            answered=session.user_answers[i] is not None,
            bookmarked=i in session.bookmarks,
            current=i == session.current_index,
            status=_status(session, i),
        )
        for i in range(len(session.working_set))
    ]
    return ReviewView(
        position=session.current_index,
        total=len(session.working_set),
        text=q.text,
        answers=q.answers,
        user_answer=session.user_answers[session.current_index],
        correct_index=q.correct_index,
        explanation=q.explanation,
        nav=nav,
    )


def result_view(session: QuizSession, retry_session: bool) -> ResultView:
    if session.result is None or session.phase not in (Phase.SUBMITTED, Phase.REVIEWING):
        raise InvalidStateError("Session has no result yet")
    wrong = []
    for record in session.result.wrong_records:
        q = session.working_set[record.position]
        wrong.append(
            WrongAnswerView(
                position=record.position,
                question_id=record.question_id,
                text=q.text,
                user_answer_text=q.answers[record.user_answer] if record.user_answer is not None else None,
                correct_answer_text=q.answers[record.correct_answer],
            )
        )
    return ResultView(result=session.result, wrong_answers=wrong, retry_session=retry_session)
