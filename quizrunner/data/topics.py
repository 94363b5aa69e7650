"""Topic filtering over the canonical question set."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from .schemas import Question, QuestionSet, clone_set

ALL_TOPICS = "all"


@dataclass(frozen=True)
class TopicStats:
    topic: str
    count: int
    total: int

    @property
    def percent(self) -> int:
        return round(self.count / self.total * 100) if self.total else 0


def available_topics(questions: Iterable[Question]) -> List[str]:
    """Return ``"all"`` followed by the distinct non-empty topics, sorted."""
    topics = {q.topic for q in questions if q.topic}
    return [ALL_TOPICS] + sorted(topics)


def filter_by_topic(questions: Iterable[Question], topic: str) -> QuestionSet:
    """Clone the questions matching ``topic``, keeping their relative order.

    An empty result is valid; callers must not start a session on it.
    """
    if topic == ALL_TOPICS:
        return clone_set(questions)
    return clone_set(q for q in questions if q.topic == topic)


def topic_stats(questions: Iterable[Question], topic: str) -> TopicStats:
    pool = list(questions)
    count = len(pool) if topic == ALL_TOPICS else sum(1 for q in pool if q.topic == topic)
    return TopicStats(topic=topic, count=count, total=len(pool))
