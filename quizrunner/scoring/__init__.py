"""Scoring for quizrunner."""

from .grading import GradeResult, WrongAnswerRecord, band_message, compute_score, grade, score_band

__all__ = [
    "GradeResult",
    "WrongAnswerRecord",
    "band_message",
    "compute_score",
    "grade",
    "score_band",
]
