"""Derivation of working question sets for fresh and retry sessions."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

import numpy as np

from ..config import Settings
from ..data.schemas import Question, QuestionSet, clone_set
from ..errors import EmptySetError
from ..scoring.grading import WrongAnswerRecord
from ..utils.determinism import make_rng

logger = logging.getLogger(__name__)

T = TypeVar("T")

AnswerKeyMap = Dict[str, Tuple[int, ...]]


def fisher_yates(items: Sequence[T], rng: np.random.Generator) -> List[T]:
    """Return a uniformly shuffled copy of ``items``.

    For i from the last index down to 1, swap position i with a uniformly
    random position in [0, i].
    """
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = int(rng.integers(0, i + 1))
        out[i], out[j] = out[j], out[i]
    return out


def shuffle_answers(question: Question, rng: np.random.Generator) -> Tuple[Question, Tuple[int, ...]]:
    """Permute a question's answers, keeping ``correct_index`` on the same answer.

    Returns the shuffled clone and its order, where ``order[new] == old``.
    """
    order = tuple(fisher_yates(range(len(question.answers)), rng))
    previous = question.previous_answer
    shuffled = question.clone(
        answers=tuple(question.answers[old] for old in order),
        correct_index=order.index(question.correct_index),
        previous_answer=order.index(previous) if previous is not None else None,
    )
    return shuffled, order


def identity_order(question: Question) -> Tuple[int, ...]:
    return tuple(range(len(question.answers)))


def build_fresh(
    filtered: Iterable[Question],
    settings: Settings,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[QuestionSet, AnswerKeyMap]:
    """Build the working set for a new attempt.

    - Clones the filtered set
    - Shuffles question order when ``settings.shuffle_questions``
    - Shuffles each question's answers when ``settings.shuffle_answers``

    Returns the working set and the answer order applied to every question.
    """
    rng = rng if rng is not None else make_rng()
    working = clone_set(filtered)

    if settings.shuffle_questions:
        working = fisher_yates(working, rng)

    answer_key_map: AnswerKeyMap = {}
    if settings.shuffle_answers:
        shuffled: QuestionSet = []
        for q in working:
            q2, order = shuffle_answers(q, rng)
            shuffled.append(q2)
            answer_key_map[q.id] = order
        working = shuffled
    else:
        answer_key_map = {q.id: identity_order(q) for q in working}

    return working, answer_key_map


def build_retry(
    wrong_records: Iterable[WrongAnswerRecord],
    question_index: Mapping[str, Question],
    answer_key_map: Optional[Mapping[str, Sequence[int]]] = None,
) -> QuestionSet:
    """Rebuild the wrongly answered questions from the live canonical index.

    The prior answer is attached as ``previous_answer``, translated back into
    the canonical answer order when the attempt had shuffled answers. Records
    whose id no longer resolves are dropped.

    Raises:
        EmptySetError: If no record resolves
    """
    working: QuestionSet = []
    dropped = 0
    for record in wrong_records:
        live = question_index.get(record.question_id)
        if live is None:
            dropped += 1
            continue
        previous = record.user_answer
        order = (answer_key_map or {}).get(record.question_id)
        if previous is not None and order is not None:
            previous = order[previous]
        working.append(live.clone(previous_answer=previous))

    if dropped:
        logger.warning("Dropped %d retry question(s) missing from the current question set", dropped)
    if not working:
        raise EmptySetError("No questions left to retry")
    return working


def build_retry_all(filtered: Iterable[Question]) -> QuestionSet:
    """Clone the whole filtered set in its original order; retry never shuffles."""
    return clone_set(filtered)
