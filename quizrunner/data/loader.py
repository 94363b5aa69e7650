from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Set, Union

from ..errors import ValidationError
from .ids import make_question_id
from .schemas import Question, QuestionSet
from .validators import CORRECT_KEYS, TEXT_KEYS, first_present, validate_document, validate_record

logger = logging.getLogger(__name__)

MAX_FILE_BYTES = 5 * 1024 * 1024


def parse_document(raw: Union[str, bytes, dict]) -> Any:
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValidationError(f"Invalid JSON document: {e}", errors=[str(e)]) from e
    return raw


def read_document(path: Union[str, Path], max_bytes: int = MAX_FILE_BYTES) -> Any:
    """Read and parse an import file.

    Raises:
        ValidationError: If the file is missing, too large or not JSON
    """
    p = Path(path)
    if not p.is_file():
        raise ValidationError(f"Question file not found: {p}")
    size = p.stat().st_size
    if size > max_bytes:
        raise ValidationError(f"Question file too large: {size} bytes (limit {max_bytes})")
    try:
        text = p.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ValidationError(f"Cannot read question file {p}: {e}") from e
    return parse_document(text)


def load_questions(raw: Union[str, bytes, dict], id_salt: str = "") -> QuestionSet:
    """Validate an import document and convert it into Question objects.

    - Collects every record problem before failing
    - Generates stable hashed ids for records without one
    - Preserves document order
    """
    data = parse_document(raw)
    try:
        records = validate_document(data)
    except ValueError as e:
        raise ValidationError(str(e), errors=[str(e)]) from e

    errors: List[str] = []
    for i, obj in enumerate(records, 1):
        problem = validate_record(obj)
        if problem:
            errors.append(f"Question {i}: {problem}")

    explicit = [str(obj["id"]) for obj in records if isinstance(obj, dict) and obj.get("id") not in (None, "")]
    seen: Set[str] = set()
    for qid in explicit:
        if qid in seen:
            errors.append(f"Duplicate question id: {qid}")
        seen.add(qid)

    if errors:
        logger.warning("Import rejected with %d error(s)", len(errors))
        raise ValidationError.from_errors(errors)

    taken: Set[str] = set(explicit)
    out: QuestionSet = []
    for i, obj in enumerate(records):
        answers = tuple(str(a) for a in obj["answers"])
        text = str(first_present(obj, TEXT_KEYS))
        qid = obj.get("id")
        if qid in (None, ""):
            qid = make_question_id(text, list(answers), salt=id_salt)
            if qid in taken:
                qid = f"{qid}_{i}"
            taken.add(qid)

        out.append(
            Question(
                id=str(qid),
                text=text,
                answers=answers,
                correct_index=first_present(obj, CORRECT_KEYS),
                topic=obj.get("topic") or None,
                explanation=obj.get("explanation") or None,
            )
        )
    return out
