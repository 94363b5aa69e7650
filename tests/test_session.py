from __future__ import annotations

import unittest

import pytest

from quizrunner.data.schemas import Question
from quizrunner.errors import ConfirmationRequired, EmptySetError, InvalidStateError
from quizrunner.scoring.grading import GradeResult
from quizrunner.session.state import Phase, QuizSession, SessionMode
from quizrunner.session.timer import ManualScheduler, TimerState, format_seconds


def _working(n: int = 3):
    return [
        Question(id=f"q{i}", text=f"Question {i}", answers=("a", "b", "c"), correct_index=0)
        for i in range(n)
    ]


class TestSessionLifecycle(unittest.TestCase):
    def setUp(self) -> None:
        self.scheduler = ManualScheduler()
        self.session = QuizSession(self.scheduler)

    def test_start_resets_state(self) -> None:
        self.session.start(_working(3))
        self.assertIs(self.session.phase, Phase.ACTIVE)
        self.assertEqual(self.session.current_index, 0)
        self.assertEqual(self.session.user_answers, [None, None, None])
        self.assertEqual(self.session.bookmarks, set())
        self.assertIsNone(self.session.timer)
        self.assertFalse(self.session.timer_running)

    def test_start_empty_set_leaves_session_alone(self) -> None:
        with self.assertRaises(EmptySetError):
            self.session.start([])
        self.assertIs(self.session.phase, Phase.SETUP)

    def test_start_rejects_non_positive_timer(self) -> None:
        with self.assertRaises(ValueError):
            self.session.start(_working(), timer_limit_seconds=0)

    def test_working_set_is_copied(self) -> None:
        working = _working(2)
        self.session.start(working)
        working.pop()
        self.assertEqual(len(self.session.working_set), 2)

    def test_operations_in_wrong_phase(self) -> None:
        with self.assertRaises(InvalidStateError):
            self.session.select_answer(0)
        with self.assertRaises(InvalidStateError):
            self.session.submit()
        with self.assertRaises(InvalidStateError):
            self.session.enter_review()
        self.session.start(_working())
        with self.assertRaises(InvalidStateError):
            self.session.exit_review()

    def test_abandon_returns_to_setup_and_stops_timer(self) -> None:
        self.session.start(_working(), timer_limit_seconds=10)
        self.assertEqual(self.scheduler.active_count, 1)
        self.session.abandon()
        self.assertIs(self.session.phase, Phase.SETUP)
        self.assertEqual(self.scheduler.active_count, 0)
        self.assertIsNone(self.session.result)

    def test_restart_keeps_a_single_countdown(self) -> None:
        self.session.start(_working(), timer_limit_seconds=10)
        self.session.start(_working(), timer_limit_seconds=10)
        self.assertEqual(self.scheduler.active_count, 1)
        self.scheduler.advance(3)
        self.assertEqual(self.session.timer.remaining_seconds, 7)


class TestAnsweringAndNavigation(unittest.TestCase):
    def setUp(self) -> None:
        self.session = QuizSession(ManualScheduler())
        self.session.start(_working(3))

    def test_select_and_overwrite(self) -> None:
        self.session.select_answer(1)
        self.session.select_answer(2)
        self.assertEqual(self.session.user_answers, [2, None, None])
        self.assertEqual(self.session.answered_count, 1)
        self.assertEqual(self.session.unanswered, [1, 2])

    def test_select_out_of_range(self) -> None:
        with self.assertRaises(ValueError):
            self.session.select_answer(3)
        with self.assertRaises(ValueError):
            self.session.select_answer(-1)

    def test_navigation_clamps_at_edges(self) -> None:
        self.session.prev()
        self.assertEqual(self.session.current_index, 0)
        self.session.next()
        self.session.next()
        self.session.next()
        self.assertEqual(self.session.current_index, 2)
        self.session.go_to(1)
        self.assertEqual(self.session.current_index, 1)
        with self.assertRaises(ValueError):
            self.session.go_to(3)

    def test_bookmarks_toggle(self) -> None:
        self.assertTrue(self.session.toggle_bookmark())
        self.assertEqual(self.session.bookmarks, {0})
        self.assertFalse(self.session.toggle_bookmark())
        self.assertEqual(self.session.bookmarks, set())


class TestSubmission(unittest.TestCase):
    def setUp(self) -> None:
        self.scheduler = ManualScheduler()
        self.session = QuizSession(self.scheduler)

    def test_unanswered_requires_confirmation(self) -> None:
        self.session.start(_working(3), timer_limit_seconds=60)
        self.session.select_answer(0)
        outcome = self.session.submit()
        self.assertIsInstance(outcome, ConfirmationRequired)
        self.assertEqual(outcome.unanswered, (1, 2))
        self.assertEqual(outcome.count, 2)
        self.assertIs(self.session.phase, Phase.ACTIVE)
        self.assertTrue(self.session.timer_running)

        result = self.session.submit(force_confirm_unanswered=True)
        self.assertIsInstance(result, GradeResult)
        self.assertEqual(result.correct_count, 1)
        self.assertIs(self.session.phase, Phase.SUBMITTED)
        self.assertFalse(self.session.timer_running)

    def test_all_answered_submits_directly(self) -> None:
        self.session.start(_working(2))
        for i in range(2):
            self.session.go_to(i)
            self.session.select_answer(0)
        result = self.session.submit()
        self.assertEqual(result.score, 10.0)
        self.assertIsNone(result.time_spent_seconds)
        self.assertFalse(result.time_expired)

    def test_timer_expiry_forces_submission(self) -> None:
        seen = []
        self.session.add_submit_listener(lambda s, r: seen.append(r))
        self.session.start(_working(1), timer_limit_seconds=1)
        self.scheduler.advance(1)

        self.assertIs(self.session.phase, Phase.SUBMITTED)
        result = self.session.result
        self.assertTrue(result.time_expired)
        self.assertEqual(result.time_spent_seconds, 1)
        self.assertEqual(result.correct_count, 0)
        self.assertEqual(seen, [result])
        self.assertEqual(self.scheduler.active_count, 0)

        # Further time passing changes nothing
        self.scheduler.advance(5)
        self.assertEqual(self.session.result, result)

    def test_time_spent_is_elapsed(self) -> None:
        self.session.start(_working(1), timer_limit_seconds=30)
        self.scheduler.advance(12)
        self.session.select_answer(0)
        result = self.session.submit()
        self.assertEqual(result.time_spent_seconds, 12)
        self.assertEqual(self.session.timer.remaining_seconds, 18)

    def test_review_round_trip(self) -> None:
        self.session.start(_working(3))
        self.session.go_to(2)
        self.session.submit(force_confirm_unanswered=True)
        self.session.enter_review()
        self.assertIs(self.session.phase, Phase.REVIEWING)
        self.assertEqual(self.session.current_index, 0)
        self.session.next()
        self.assertEqual(self.session.current_index, 1)
        with self.assertRaises(InvalidStateError):
            self.session.select_answer(0)
        self.session.exit_review()
        self.assertIs(self.session.phase, Phase.SUBMITTED)

    def test_mode_is_recorded(self) -> None:
        self.session.start(_working(1), mode=SessionMode.RETRY)
        self.assertIs(self.session.mode, SessionMode.RETRY)


def test_manual_scheduler_cancel_is_idempotent():
    scheduler = ManualScheduler()
    calls = []
    handle = scheduler.schedule(lambda: calls.append(1))
    scheduler.advance(2)
    handle.cancel()
    handle.cancel()
    scheduler.advance(2)
    assert calls == [1, 1]
    assert scheduler.active_count == 0


def test_manual_scheduler_interval():
    scheduler = ManualScheduler()
    calls = []
    scheduler.schedule(lambda: calls.append(1), interval=3)
    scheduler.advance(7)
    assert len(calls) == 2
    with pytest.raises(ValueError):
        scheduler.schedule(lambda: None, interval=0)


def test_timer_display():
    assert format_seconds(0) == "0:00"
    assert format_seconds(65) == "1:05"
    assert format_seconds(1800) == "30:00"
    state = TimerState(limit_seconds=90, remaining_seconds=61)
    assert state.display() == "1:01"
    assert state.elapsed_seconds == 29
    assert not state.expired
