"""Scoring and grading of a submitted attempt."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Sequence

from ..data.schemas import Question

MAX_SCORE = 10

BAND_ALL = "all"
BAND_EXCELLENT = "excellent"
BAND_GOOD = "good"
BAND_AVERAGE = "average"
BAND_NEEDS_IMPROVEMENT = "needs_improvement"

# Lower bound of each band, highest first
BAND_THRESHOLDS = (
    (BAND_EXCELLENT, 8.0),
    (BAND_GOOD, 6.5),
    (BAND_AVERAGE, 5.0),
)

BAND_MESSAGES = {
    BAND_EXCELLENT: "Excellent!",
    BAND_GOOD: "Good job!",
    BAND_AVERAGE: "Average",
    BAND_NEEDS_IMPROVEMENT: "Keep practicing!",
}


@dataclass(frozen=True)
class WrongAnswerRecord:
    """A missed position, keyed by question id so a retry can re-fetch it."""
    question_id: str
    position: int
    user_answer: Optional[int]  # None when unanswered
    correct_answer: int


@dataclass(frozen=True)
class GradeResult:
    total: int
    correct_count: int
    score: float
    wrong_records: List[WrongAnswerRecord] = field(default_factory=list)
    time_expired: bool = False
    time_spent_seconds: Optional[int] = None

    @property
    def wrong_count(self) -> int:
        return len(self.wrong_records)

    @property
    def band(self) -> str:
        return score_band(self.score)

    @property
    def message(self) -> str:
        return band_message(self.band)


def compute_score(correct_count: int, total: int) -> float:
    """Score out of 10, rounded half-up to 2 decimals."""
    if total <= 0:
        return 0.0
    raw = Decimal(correct_count * MAX_SCORE) / Decimal(total)
    return float(raw.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def grade(
    working_set: Sequence[Question],
    user_answers: Sequence[Optional[int]],
    time_expired: bool = False,
    time_spent_seconds: Optional[int] = None,
) -> GradeResult:
    """Grade an attempt position by position.

    Unanswered positions count as wrong. The result depends only on the
    arguments.
    """
    if len(user_answers) != len(working_set):
        raise ValueError(
            f"Answer count {len(user_answers)} does not match question count {len(working_set)}"
        )

    correct_count = 0
    wrong: List[WrongAnswerRecord] = []
    for position, (q, answer) in enumerate(zip(working_set, user_answers)):
        if answer == q.correct_index:
            correct_count += 1
        else:
            wrong.append(
                WrongAnswerRecord(
                    question_id=q.id,
                    position=position,
                    user_answer=answer,
                    correct_answer=q.correct_index,
                )
            )

    return GradeResult(
        total=len(working_set),
        correct_count=correct_count,
        score=compute_score(correct_count, len(working_set)),
        wrong_records=wrong,
        time_expired=time_expired,
        time_spent_seconds=time_spent_seconds,
    )


def score_band(score: float) -> str:
    for band, lower in BAND_THRESHOLDS:
        if score >= lower:
            return band
    return BAND_NEEDS_IMPROVEMENT


def band_message(band: str) -> str:
    return BAND_MESSAGES[band]
