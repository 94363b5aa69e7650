"""CSV/JSON export and summary statistics for session history."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, Optional, Sequence

import pandas as pd

from ..data.topics import ALL_TOPICS
from ..session.timer import format_seconds

if TYPE_CHECKING:
    from .store import HistoryEntry

CSV_COLUMNS = ["date", "score", "total", "correct", "wrong", "time_spent", "topic"]
EXPORT_FORMATS = ("csv", "json")


def history_frame(entries: Sequence[HistoryEntry]) -> pd.DataFrame:
    """One row per entry with display-ready columns."""
    rows = [
        {
            "date": e.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            "score": f"{e.score:.2f}",
            "total": e.total_questions,
            "correct": e.correct_count,
            "wrong": e.wrong_count,
            "time_spent": format_seconds(e.time_spent_seconds) if e.time_spent_seconds is not None else "N/A",
            "topic": e.topic or ALL_TOPICS,
        }
        for e in entries
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS)


def export_csv(entries: Sequence[HistoryEntry]) -> str:
    return history_frame(entries).to_csv(index=False, lineterminator="\n")


def export_json(entries: Sequence[HistoryEntry], now: Optional[datetime] = None) -> str:
    payload = {
        "export_date": (now or datetime.now(timezone.utc)).isoformat(),
        "total_sessions": len(entries),
        "sessions": [e.to_dict() for e in entries],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def export_history(entries: Sequence[HistoryEntry], fmt: str = "csv") -> str:
    """Render history as CSV or JSON text.

    Raises:
        ValueError: If ``fmt`` is not csv or json
    """
    if fmt == "csv":
        return export_csv(entries)
    if fmt == "json":
        return export_json(entries)
    raise ValueError(f"Unsupported export format: {fmt}")


def summarize(entries: Sequence[HistoryEntry]) -> Dict[str, float]:
    if not entries:
        return {"sessions": 0, "mean_score": 0.0, "best_score": 0.0, "worst_score": 0.0}
    scores = pd.Series([e.score for e in entries], dtype=float)
    return {
        "sessions": int(scores.size),
        "mean_score": round(float(scores.mean()), 2),
        "best_score": float(scores.max()),
        "worst_score": float(scores.min()),
    }
