"""Question data handling for quizrunner."""

from .loader import load_questions, read_document
from .schemas import Question, QuestionSet, clone_set
from .store import QuestionStore
from .topics import ALL_TOPICS, TopicStats, available_topics, filter_by_topic, topic_stats

__all__ = [
    "ALL_TOPICS",
    "Question",
    "QuestionSet",
    "QuestionStore",
    "TopicStats",
    "available_topics",
    "clone_set",
    "filter_by_topic",
    "load_questions",
    "read_document",
    "topic_stats",
]
