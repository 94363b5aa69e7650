from __future__ import annotations

from typing import Any, Dict, List, Optional

from .topics import ALL_TOPICS


TEXT_KEYS = ("question", "text")
CORRECT_KEYS = ("correct", "correctIndex", "correct_index")


def first_present(obj: Dict[str, Any], keys: tuple) -> Any:
    """Return the value of the first key present in obj, or None."""
    for k in keys:
        if k in obj:
            return obj[k]
    return None


def validate_record(obj: Any) -> Optional[str]:
    """Check one question record and describe the first problem found.

    Rules:
      - the record is a mapping
      - question text is a non-empty string
      - answers is a list of at least 2 items
      - the correct index is an int (not a bool) within answer bounds

    Returns None when the record is valid.
    """
    if not isinstance(obj, dict):
        return f"expected an object, got {type(obj).__name__}"

    text = first_present(obj, TEXT_KEYS)
    if not isinstance(text, str) or not text.strip():
        return "missing or malformed question text"

    answers = obj.get("answers")
    if not isinstance(answers, list) or len(answers) < 2:
        return "at least 2 answers are required"

    correct = first_present(obj, CORRECT_KEYS)
    if isinstance(correct, bool) or not isinstance(correct, int):
        return f"correct answer index must be an integer ({correct!r})"
    if not (0 <= correct < len(answers)):
        return f"correct answer index out of range ({correct})"

    qid = obj.get("id")
    if qid is not None and not isinstance(qid, (str, int)):
        return f"id must be a string or integer, got {type(qid).__name__}"

    for key in ("topic", "explanation"):
        value = obj.get(key)
        if value is not None and not isinstance(value, str):
            return f"{key} must be a string"
    if obj.get("topic") == ALL_TOPICS:
        return f"topic '{ALL_TOPICS}' is reserved for the unfiltered set"
    return None


def validate_document(data: Any) -> List[Any]:
    """Return the question records of an import document or raise ValueError."""
    if not isinstance(data, dict):
        raise ValueError("document must be an object with a 'questions' list")
    records = data.get("questions")
    if not isinstance(records, list) or not records:
        raise ValueError("document has no questions")
    return records
