"""Presentation-facing facade.

``QuizApp`` is the command surface a front end calls: every method performs
one state transition and returns the data needed to render its result. It
owns exactly one question store, settings object, history store and session;
nothing is kept at module level, so several apps can coexist in one process.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional, Union

import numpy as np

from .config import AppConfig, Settings, default_app_config
from .data.schemas import QuestionSet
from .data.store import QuestionStore
from .data.topics import ALL_TOPICS, TopicStats, available_topics, filter_by_topic, topic_stats
from .errors import ConfirmationRequired, EmptySetError, InvalidStateError, PersistenceError
from .history.store import HistoryEntry, HistoryStore
from .scoring.grading import BAND_ALL, GradeResult, WrongAnswerRecord
from .session.builder import AnswerKeyMap, build_fresh, build_retry, build_retry_all, identity_order
from .session.state import Phase, QuizSession, SessionMode
from .session.timer import ManualScheduler
from .storage import JsonFileStorage, SessionStorage
from .utils.determinism import make_rng
from .views import QuestionView, ResultView, ReviewView, question_view, result_view, review_view

logger = logging.getLogger(__name__)

NavigationView = Union[QuestionView, ReviewView]


class QuizApp:
    """One user's quiz runner: imported questions, settings, history and the live session."""

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        storage: Optional[SessionStorage] = None,
        scheduler: Optional[ManualScheduler] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config or default_app_config()
        self.storage = storage if storage is not None else JsonFileStorage(self.config.storage.directory)
        self.scheduler = scheduler if scheduler is not None else ManualScheduler()
        self.rng = rng if rng is not None else make_rng(self.config.importing.seed)

        self.store = QuestionStore(
            id_salt=self.config.importing.id_salt,
            max_file_bytes=self.config.importing.max_file_bytes,
        )
        self.filtered: QuestionSet = []
        self.settings = self._load_settings()
        self.history = HistoryStore(
            storage=self.storage,
            key=self.config.storage.history_key,
            limit=self.config.storage.history_limit,
        )
        self.history.load()
        self.history_band = BAND_ALL

        self.session = QuizSession(self.scheduler)
        self.session.add_submit_listener(self._on_submitted)
        self.answer_key_map: AnswerKeyMap = {}
        self.wrong_records: List[WrongAnswerRecord] = []
        self.session_topic = ALL_TOPICS

    # -- settings persistence -------------------------------------------

    def _load_settings(self) -> Settings:
        try:
            payload = self.storage.get_item(self.config.storage.settings_key)
        except PersistenceError as e:
            logger.warning("Could not load settings, using defaults: %s", e)
            return Settings()
        return Settings.from_dict(payload)

    def save_settings(self) -> None:
        try:
            self.storage.set_item(self.config.storage.settings_key, self.settings.to_dict())
        except PersistenceError as e:
            logger.warning("Could not save settings: %s", e)

    def toggle_dark_mode(self) -> Settings:
        self.settings.dark_mode = not self.settings.dark_mode
        self.save_settings()
        return self.settings

    def toggle_timer(self) -> Settings:
        self.settings.timer_enabled = not self.settings.timer_enabled
        self.save_settings()
        return self.settings

    def toggle_shuffle_questions(self) -> Settings:
        self.settings.shuffle_questions = not self.settings.shuffle_questions
        self.save_settings()
        return self.settings

    def toggle_shuffle_answers(self) -> Settings:
        self.settings.shuffle_answers = not self.settings.shuffle_answers
        self.save_settings()
        return self.settings

    def set_time_limit(self, minutes: Any) -> Settings:
        self.settings.set_time_limit(minutes)
        self.save_settings()
        return self.settings

    # -- questions and topics -------------------------------------------

    def _require_idle(self) -> None:
        if self.session.phase is Phase.ACTIVE:
            raise InvalidStateError("Finish or abandon the current session first")

    def import_questions(self, raw: Union[str, bytes, dict]) -> TopicStats:
        """Replace the canonical question set and re-apply the selected topic.

        Raises:
            ValidationError: If the document is malformed; nothing changes
            InvalidStateError: If a session is in progress
        """
        self._require_idle()
        self.store.load(raw)
        return self._after_import()

    def import_file(self, path: Union[str, Path]) -> TopicStats:
        self._require_idle()
        self.store.load_file(path)
        return self._after_import()

    def _after_import(self) -> TopicStats:
        self.wrong_records = []
        if self.settings.selected_topic not in available_topics(self.store):
            logger.info("Topic %r not in imported set; showing all topics", self.settings.selected_topic)
            self.settings.selected_topic = ALL_TOPICS
            self.save_settings()
        return self.select_topic(self.settings.selected_topic)

    def topics(self) -> List[str]:
        return available_topics(self.store)

    def select_topic(self, topic: str) -> TopicStats:
        """Derive the active subset for ``topic``; an empty subset is allowed but cannot start."""
        if self.store.loaded and topic not in available_topics(self.store):
            raise ValueError(f"Unknown topic: {topic}")
        self.filtered = filter_by_topic(self.store, topic)
        if topic != self.settings.selected_topic:
            self.settings.selected_topic = topic
            self.save_settings()
        return topic_stats(self.store, topic)

    # -- session commands -----------------------------------------------

    def _timer_limit(self) -> Optional[int]:
        return self.settings.time_limit_seconds if self.settings.timer_enabled else None

    def start(self) -> QuestionView:
        """Start a fresh attempt on the filtered set.

        Raises:
            EmptySetError: If the selected topic has no questions
        """
        self._require_idle()
        if not self.filtered:
            raise EmptySetError(f"No questions for topic {self.settings.selected_topic!r}")
        working, key_map = build_fresh(self.filtered, self.settings, rng=self.rng)
        self.session.start(working, self._timer_limit(), mode=SessionMode.NORMAL)
        self.answer_key_map = key_map
        self.session_topic = self.settings.selected_topic
        return self.current_view()

    def retry_wrong(self) -> QuestionView:
        """Start a retry session on the questions missed in the last attempt.

        Raises:
            EmptySetError: If none of the missed questions still exist
        """
        self.session.require_phase(Phase.SUBMITTED, Phase.REVIEWING)
        working = build_retry(self.wrong_records, self.store.index, self.answer_key_map)
        self.session.start(working, self._timer_limit(), mode=SessionMode.RETRY)
        self.answer_key_map = {q.id: identity_order(q) for q in working}
        return self.current_view()

    def retry_all(self) -> QuestionView:
        """Start a new graded attempt on the whole filtered set, unshuffled."""
        self._require_idle()
        working = build_retry_all(self.filtered)
        if not working:
            raise EmptySetError(f"No questions for topic {self.settings.selected_topic!r}")
        self.session.start(working, self._timer_limit(), mode=SessionMode.NORMAL)
        self.answer_key_map = {q.id: identity_order(q) for q in working}
        self.session_topic = self.settings.selected_topic
        return self.current_view()

    def go_home(self) -> None:
        self.session.abandon()

    def current_view(self) -> NavigationView:
        if self.session.phase is Phase.REVIEWING:
            return review_view(self.session)
        return question_view(self.session)

    def select_answer(self, choice_index: int) -> QuestionView:
        self.session.select_answer(choice_index)
        return question_view(self.session)

    def next(self) -> NavigationView:
        self.session.next()
        return self.current_view()

    def prev(self) -> NavigationView:
        self.session.prev()
        return self.current_view()

    def go_to(self, position: int) -> NavigationView:
        self.session.go_to(position)
        return self.current_view()

    def toggle_bookmark(self) -> QuestionView:
        self.session.toggle_bookmark()
        return question_view(self.session)

    def submit(self, force_confirm_unanswered: bool = False) -> Union[ResultView, ConfirmationRequired]:
        outcome = self.session.submit(force_confirm_unanswered)
        if isinstance(outcome, ConfirmationRequired):
            return outcome
        return self.result_view()

    def tick(self, seconds: int = 1) -> Optional[Union[NavigationView, ResultView]]:
        """Let ``seconds`` pass on the session clock; returns None outside a session."""
        self.scheduler.advance(seconds)
        if self.session.phase is Phase.SETUP:
            return None
        if self.session.phase is Phase.SUBMITTED:
            return self.result_view()
        return self.current_view()

    def result_view(self) -> ResultView:
        return result_view(self.session, retry_session=self.session.mode is SessionMode.RETRY)

    def review_view(self) -> ReviewView:
        self.session.require_phase(Phase.REVIEWING)
        return review_view(self.session)

    def enter_review(self) -> ReviewView:
        self.session.enter_review()
        return review_view(self.session)

    def exit_review(self) -> ResultView:
        self.session.exit_review()
        return self.result_view()

    def _on_submitted(self, session: QuizSession, result: GradeResult) -> None:
        self.wrong_records = list(result.wrong_records)
        if session.mode is SessionMode.RETRY:
            return
        self.history.append(HistoryEntry.from_result(result, topic=self.session_topic))

    # -- history --------------------------------------------------------

    def filter_history(self, band: str = BAND_ALL) -> List[HistoryEntry]:
        entries = self.history.filter(band)
        self.history_band = band
        return entries

    def clear_history(self) -> None:
        self.history.clear()
        self.history_band = BAND_ALL

    def export_history(self, fmt: str = "csv") -> str:
        return self.history.export(fmt)

    def history_summary(self) -> dict:
        return self.history.summary()
