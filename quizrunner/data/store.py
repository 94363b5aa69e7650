"""Canonical question store with id lookup."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from ..errors import NotFoundError
from .loader import MAX_FILE_BYTES, load_questions, read_document
from .schemas import Question, QuestionSet

logger = logging.getLogger(__name__)


class QuestionStore:
    """Holds the canonical imported question set and an id index.

    A successful load replaces the previous set entirely; a failed load
    leaves it untouched.
    """

    def __init__(self, id_salt: str = "", max_file_bytes: int = MAX_FILE_BYTES):
        self.id_salt = id_salt
        self.max_file_bytes = max_file_bytes
        self._questions: QuestionSet = []
        self._index: Dict[str, Question] = {}

    def load(self, raw: Union[str, bytes, dict]) -> QuestionSet:
        """Validate and install a new canonical set.

        Raises:
            ValidationError: If the document or any record is malformed
        """
        questions = load_questions(raw, id_salt=self.id_salt)
        index = {q.id: q for q in questions}
        self._questions, self._index = questions, index
        logger.info("Loaded %d questions", len(questions))
        return list(questions)

    def load_file(self, path: Union[str, Path]) -> QuestionSet:
        return self.load(read_document(path, max_bytes=self.max_file_bytes))

    def lookup(self, question_id: str) -> Question:
        try:
            return self._index[question_id]
        except KeyError:
            raise NotFoundError(question_id) from None

    def get(self, question_id: str) -> Optional[Question]:
        return self._index.get(question_id)

    @property
    def questions(self) -> QuestionSet:
        return list(self._questions)

    @property
    def index(self) -> Dict[str, Question]:
        return dict(self._index)

    @property
    def loaded(self) -> bool:
        return bool(self._questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)
