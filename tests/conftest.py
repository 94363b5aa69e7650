from __future__ import annotations

import copy
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from quizrunner.app import QuizApp  # noqa: E402
from quizrunner.config import AppConfig, ImportConfig, LoggingConfig, StorageConfig  # noqa: E402
from quizrunner.session.timer import ManualScheduler  # noqa: E402
from quizrunner.storage import MemoryStorage  # noqa: E402
from quizrunner.utils.determinism import make_rng  # noqa: E402


# ====================
# Question Fixtures
# ====================

TWO_QUESTION_DOC: Dict[str, Any] = {
    "questions": [
        {"id": "Q1", "text": "2+2?", "answers": ["3", "4"], "correct": 1},
        {"id": "Q2", "text": "3+3?", "answers": ["5", "6"], "correct": 1},
    ]
}


@pytest.fixture
def two_question_doc():
    """The two-question arithmetic import used in the scoring walkthrough."""
    return copy.deepcopy(TWO_QUESTION_DOC)


@pytest.fixture
def topic_doc():
    """Six questions over three topics, one without a topic."""
    return {
        "questions": [
            {"id": "A1", "question": "Capital of Italy?", "answers": ["Rome", "Milan", "Turin"], "correct": 0, "topic": "geography"},
            {"id": "M1", "question": "5 * 5?", "answers": ["10", "25", "55", "15"], "correct": 1, "topic": "math"},
            {"id": "A2", "question": "Longest river?", "answers": ["Nile", "Rhine"], "correct": 0, "topic": "geography",
             "explanation": "The Nile edges out the Amazon in most surveys."},
            {"id": "H1", "question": "Year of the moon landing?", "answers": ["1965", "1969", "1972"], "correct": 1, "topic": "history"},
            {"id": "M2", "question": "Square root of 81?", "answers": ["7", "8", "9"], "correct": 2, "topic": "math"},
            {"id": "X1", "question": "Untagged question?", "answers": ["yes", "no"], "correct": 0},
        ]
    }


@pytest.fixture
def question_file(tmp_path, topic_doc):
    path = tmp_path / "questions.json"
    path.write_text(json.dumps(topic_doc), encoding="utf-8")
    return path


# ====================
# App Fixtures
# ====================

@pytest.fixture
def app_config(tmp_path):
    return AppConfig(
        logging=LoggingConfig(log_dir=str(tmp_path / "logs")),
        storage=StorageConfig(directory=str(tmp_path / "storage")),
        importing=ImportConfig(seed=7),
    )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def app(app_config, storage, scheduler):
    """A QuizApp backed by in-memory storage and a manually driven clock."""
    return QuizApp(config=app_config, storage=storage, scheduler=scheduler, rng=make_rng(7))


@pytest.fixture(autouse=True)
def reset_quizrunner_logger():
    """Drop handlers added by setup_logging so each CLI test configures its own."""
    yield
    logger = logging.getLogger("quizrunner")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger._configured = False  # type: ignore[attr-defined]
