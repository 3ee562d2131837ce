"""Pydantic models for questions and users."""
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Separator between the fields of one stored record.
FIELD_DELIMITER = ","

# parent_id of a question that starts its own thread.
NO_PARENT = -1

# Thread-root id -> member question ids, root first.
ThreadIndex = Dict[int, List[int]]

_FORBIDDEN_IN_TEXT = (FIELD_DELIMITER, "\n", "\r")


def _check_storable(value: str, field_name: str) -> str:
    for char in _FORBIDDEN_IN_TEXT:
        if char in value:
            raise ValueError(f"{field_name} must not contain {char!r}")
    return value


class Question(BaseModel):
    """A question sent from one user to another, possibly part of a thread."""
    model_config = ConfigDict(validate_assignment=True)

    id: int = Field(..., description="Unique question ID, never reused")
    parent_id: int = Field(default=NO_PARENT, description="Thread root ID, or -1 for a new thread")
    from_user_id: int = Field(..., description="Author user ID")
    to_user_id: int = Field(..., description="Recipient user ID")
    anonymous: bool = Field(default=False, description="Hide the author from the recipient")
    text: str = Field(..., min_length=1, description="Question body")
    answer: str = Field(default="", description="Recipient reply, empty while unanswered")

    @field_validator("text", "answer")
    @classmethod
    def no_delimiters(cls, value: str, info) -> str:
        return _check_storable(value, info.field_name)

    @property
    def is_answered(self) -> bool:
        return bool(self.answer)

    @property
    def is_thread_root(self) -> bool:
        return self.parent_id == NO_PARENT

    @property
    def thread_id(self) -> int:
        """ID of the thread this question belongs to."""
        return self.id if self.is_thread_root else self.parent_id


class UserIdentity(BaseModel):
    """The part of a user the question store is allowed to see."""
    id: int
    allows_anonymous: bool


class User(BaseModel):
    """A registered user of the service."""
    id: int = Field(..., description="Unique user ID")
    username: str = Field(..., min_length=1, description="Login name, no whitespace")
    password_hash: str = Field(..., min_length=1, description="passlib hash of the password")
    name: str = Field(default="", description="Display name")
    email: str = Field(default="", description="Contact email")
    allows_anonymous: bool = Field(default=True, description="Accept anonymous questions")

    @field_validator("username")
    @classmethod
    def username_has_no_whitespace(cls, value: str) -> str:
        if any(char.isspace() for char in value):
            raise ValueError("username must not contain whitespace")
        return value

    @field_validator("username", "password_hash", "name", "email")
    @classmethod
    def no_delimiters(cls, value: str, info) -> str:
        return _check_storable(value, info.field_name)

    @property
    def identity(self) -> UserIdentity:
        return UserIdentity(id=self.id, allows_anonymous=self.allows_anonymous)
