"""Capped, newest-first history of graded sessions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..data.topics import ALL_TOPICS
from ..errors import PersistenceError
from ..scoring.grading import (
    BAND_ALL,
    BAND_AVERAGE,
    BAND_EXCELLENT,
    BAND_GOOD,
    GradeResult,
    score_band,
)
from ..storage import SessionStorage
from .export import export_history, summarize

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50
HISTORY_BANDS = (BAND_ALL, BAND_EXCELLENT, BAND_GOOD, BAND_AVERAGE)


@dataclass(frozen=True)
class HistoryEntry:
    timestamp: datetime
    score: float
    total_questions: int
    correct_count: int
    wrong_count: int
    time_spent_seconds: Optional[int] = None
    topic: str = ALL_TOPICS

    @classmethod
    def from_result(
        cls,
        result: GradeResult,
        topic: str = ALL_TOPICS,
        timestamp: Optional[datetime] = None,
    ) -> "HistoryEntry":
        return cls(
            timestamp=timestamp or datetime.now(timezone.utc),
            score=result.score,
            total_questions=result.total,
            correct_count=result.correct_count,
            wrong_count=result.wrong_count,
            time_spent_seconds=result.time_spent_seconds,
            topic=topic or ALL_TOPICS,
        )

    @property
    def band(self) -> str:
        return score_band(self.score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "score": self.score,
            "total": self.total_questions,
            "correct": self.correct_count,
            "wrong": self.wrong_count,
            "timeSpent": self.time_spent_seconds,
            "topic": self.topic,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "HistoryEntry":
        """Rebuild an entry from storage.

        Raises:
            ValueError: If a field is missing or malformed
        """
        try:
            return cls(
                timestamp=_parse_timestamp(payload["timestamp"]),
                score=float(payload["score"]),
                total_questions=int(payload["total"]),
                correct_count=int(payload["correct"]),
                wrong_count=int(payload["wrong"]),
                time_spent_seconds=_parse_seconds(payload.get("timeSpent")),
                topic=payload.get("topic") or ALL_TOPICS,
            )
        except (KeyError, TypeError, OverflowError, OSError) as e:
            raise ValueError(f"Malformed history entry: {e}") from e


def _parse_timestamp(value: Any) -> datetime:
    # Epoch milliseconds are accepted for entries written by the browser build
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return datetime.fromisoformat(str(value))


def _parse_seconds(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, str) and ":" in value:
        minutes, seconds = value.split(":", 1)
        return int(minutes) * 60 + int(seconds)
    return int(value)


class HistoryStore:
    """Ordered history, newest first, never longer than ``limit``.

    Persistence failures are logged and swallowed so a broken storage
    backend never interrupts a quiz.
    """

    def __init__(
        self,
        storage: Optional[SessionStorage] = None,
        key: str = "quizHistory",
        limit: int = HISTORY_LIMIT,
    ):
        self.storage = storage
        self.key = key
        self.limit = limit
        self._entries: List[HistoryEntry] = []

    @property
    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: HistoryEntry) -> None:
        self._entries.insert(0, entry)
        del self._entries[self.limit:]
        self.save()

    def filter(self, band: str = BAND_ALL) -> List[HistoryEntry]:
        """Entries in the given score band, newest first.

        Raises:
            ValueError: If ``band`` is not one of HISTORY_BANDS
        """
        if band not in HISTORY_BANDS:
            raise ValueError(f"Unknown history band: {band}")
        if band == BAND_ALL:
            return self.entries
        return [e for e in self._entries if e.band == band]

    def export(self, fmt: str = "csv") -> str:
        return export_history(self._entries, fmt)

    def summary(self) -> Dict[str, float]:
        return summarize(self._entries)

    def clear(self) -> None:
        self._entries = []
        if self.storage is None:
            return
        try:
            self.storage.remove_item(self.key)
        except PersistenceError as e:
            logger.warning("Could not clear saved history: %s", e)

    def load(self) -> None:
        """Replace in-memory history with the stored copy; bad data yields empty history."""
        if self.storage is None:
            return
        try:
            payload = self.storage.get_item(self.key)
        except PersistenceError as e:
            logger.warning("Could not load history: %s", e)
            self._entries = []
            return
        if not isinstance(payload, list):
            self._entries = []
            return

        entries: List[HistoryEntry] = []
        for item in payload:
            try:
                entries.append(HistoryEntry.from_dict(item))
            except ValueError as e:
                logger.warning("Skipping history entry: %s", e)
        self._entries = entries[: self.limit]

    def save(self) -> None:
        if self.storage is None:
            return
        try:
            self.storage.set_item(self.key, [e.to_dict() for e in self._entries[: self.limit]])
        except PersistenceError as e:
            logger.warning("Could not save history: %s", e)
