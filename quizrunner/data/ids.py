"""Question id generation for imports that omit ids."""

import hashlib


def make_question_id(
    question_text: str,
    answers: list[str],
    salt: str | None = None
) -> str:
    """Generate a stable question ID using BLAKE2b hashing.

    Args:
        question_text: The question text
        answers: List of answer texts
        salt: Optional salt mixed into the hash

    Returns:
        ``Q_`` followed by a 16-character hexadecimal digest
    """
    normalized_text = _normalize_text_for_hash(question_text, answers)

    if salt:
        normalized_text = f"{salt}:{normalized_text}"

    digest = hashlib.blake2b(
        normalized_text.encode('utf-8'),
        digest_size=8
    ).hexdigest()
    return f"Q_{digest}"


def _normalize_text_for_hash(question_text: str, answers: list[str]) -> str:
    """Normalize text for consistent hashing."""
    normalized_question = question_text.lower().strip()
    normalized_answers = [answer.lower().strip() for answer in answers]

    # Answer order must not change the id
    normalized_answers.sort()

    return f"{normalized_question}|{'|'.join(normalized_answers)}"
