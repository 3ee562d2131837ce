"""Line codec for the question and user data files.

Every record is a single line of fields joined by ``FIELD_DELIMITER``.
Text fields are written raw: the models refuse the delimiter and line
breaks, so nothing is ever escaped.

Question line::

    id,parent_id,from_user_id,to_user_id,anonymous,text,answer

User line::

    id,username,password_hash,name,email,allows_anonymous
"""
import re
from typing import List

from pydantic import ValidationError as PydanticValidationError

from askbox.models.schemas import FIELD_DELIMITER, NO_PARENT, Question, User
from askbox.utils.exceptions import InvalidRecordFormat

QUESTION_FIELD_COUNT = 7
USER_FIELD_COUNT = 6

# Canonical decimal integers only, so a decoded line re-encodes to the same bytes.
_INTEGER = re.compile(r"0|-?[1-9][0-9]*")


def _split(line: str, expected: int, kind: str) -> List[str]:
    try:
        line.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidRecordFormat(f"Invalid {kind} format: not valid UTF-8") from e
    parts = line.split(FIELD_DELIMITER)
    if len(parts) != expected:
        raise InvalidRecordFormat(
            f"Invalid {kind} format: expected {expected} fields, got {len(parts)}"
        )
    return parts


def _to_int(value: str, field_name: str) -> int:
    if not _INTEGER.fullmatch(value):
        raise InvalidRecordFormat(f"Invalid record format: {field_name} is not an integer: {value!r}")
    return int(value)


def _to_flag(value: str, field_name: str) -> bool:
    number = _to_int(value, field_name)
    if number not in (0, 1):
        raise InvalidRecordFormat(f"Invalid record format: {field_name} must be 0 or 1, got {number}")
    return bool(number)


def encode_question(question: Question) -> str:
    """Serialize a question into one line (without terminator)."""
    return FIELD_DELIMITER.join([
        str(question.id),
        str(question.parent_id),
        str(question.from_user_id),
        str(question.to_user_id),
        "1" if question.anonymous else "0",
        question.text,
        question.answer,
    ])


def decode_question(line: str) -> Question:
    """Parse one question line, raising InvalidRecordFormat if it is malformed."""
    parts = _split(line, QUESTION_FIELD_COUNT, "question")
    question_id = _to_int(parts[0], "id")
    parent_id = _to_int(parts[1], "parent_id")
    if question_id < 1:
        raise InvalidRecordFormat(f"Invalid question format: id must be positive, got {question_id}")
    if parent_id != NO_PARENT and (parent_id < 1 or parent_id == question_id):
        raise InvalidRecordFormat(f"Invalid question format: bad parent_id {parent_id} for question {question_id}")
    try:
        return Question(
            id=question_id,
            parent_id=parent_id,
            from_user_id=_to_int(parts[2], "from_user_id"),
            to_user_id=_to_int(parts[3], "to_user_id"),
            anonymous=_to_flag(parts[4], "anonymous"),
            text=parts[5],
            answer=parts[6],
        )
    except PydanticValidationError as e:
        raise InvalidRecordFormat(f"Invalid question format: {e.errors()[0]['msg']}") from e


def encode_user(user: User) -> str:
    """Serialize a user into one line (without terminator)."""
    return FIELD_DELIMITER.join([
        str(user.id),
        user.username,
        user.password_hash,
        user.name,
        user.email,
        "1" if user.allows_anonymous else "0",
    ])


def decode_user(line: str) -> User:
    """Parse one user line, raising InvalidRecordFormat if it is malformed."""
    parts = _split(line, USER_FIELD_COUNT, "user")
    try:
        return User(
            id=_to_int(parts[0], "id"),
            username=parts[1],
            password_hash=parts[2],
            name=parts[3],
            email=parts[4],
            allows_anonymous=_to_flag(parts[5], "allows_anonymous"),
        )
    except PydanticValidationError as e:
        raise InvalidRecordFormat(f"Invalid user format: {e.errors()[0]['msg']}") from e
