"""Session history for quizrunner."""

from .export import EXPORT_FORMATS, export_csv, export_history, export_json, history_frame, summarize
from .store import HISTORY_BANDS, HISTORY_LIMIT, HistoryEntry, HistoryStore

__all__ = [
    "EXPORT_FORMATS",
    "HISTORY_BANDS",
    "HISTORY_LIMIT",
    "HistoryEntry",
    "HistoryStore",
    "export_csv",
    "export_history",
    "export_json",
    "history_frame",
    "summarize",
]
