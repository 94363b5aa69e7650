from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class Question:
    id: str
    text: str
    answers: Tuple[str, ...]
    correct_index: int  # 0-based index into answers
    topic: Optional[str] = None
    explanation: Optional[str] = None
    previous_answer: Optional[int] = None  # prior answer when retried, in this answer order

    def clone(self, **changes: Any) -> "Question":
        """Return a structural copy that shares no mutable state with this question."""
        changes.setdefault("answers", tuple(self.answers))
        return replace(self, **changes)

    @property
    def correct_answer(self) -> str:
        return self.answers[self.correct_index]


QuestionSet = List[Question]


def clone_set(questions: Iterable[Question]) -> QuestionSet:
    return [q.clone() for q in questions]
