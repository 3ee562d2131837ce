"""User directory backed by the users file."""
import logging
from pathlib import Path
from typing import Dict, List, Union

from pydantic import ValidationError as PydanticValidationError

from askbox.auth import get_password_hash, verify_password
from askbox.codec import decode_user, encode_user
from askbox.models.schemas import User, UserIdentity
from askbox.storage import read_file_lines, write_file_lines
from askbox.utils.exceptions import (
    InvalidCredentials,
    InvalidInput,
    InvalidRecordFormat,
    NotFound,
    StorageUnavailable,
    UsernameTaken,
)

logger = logging.getLogger(__name__)


class UserDirectory:
    """Registered users, keyed by username."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._users: Dict[str, User] = {}
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._users)

    def load(self) -> None:
        self._users = {}
        self._next_id = 0

        try:
            lines = read_file_lines(self.path)
        except StorageUnavailable as e:
            logger.warning(f"{e.detail}; starting with an empty user directory")
            lines = []

        for line_no, line in enumerate(lines, start=1):
            try:
                user = decode_user(line)
            except InvalidRecordFormat as e:
                logger.warning(f"Skipping line {line_no} of {self.path}: {e.detail}")
                continue
            self._users[user.username] = user
            self._next_id = max(self._next_id, user.id)

        logger.info(f"Loaded {len(self._users)} users from {self.path}")

    def save(self) -> None:
        """Rewrite the users file, ascending by id."""
        write_file_lines(self.path, [encode_user(user) for user in self.list_users()], append=False)

    def list_users(self) -> List[User]:
        return sorted(self._users.values(), key=lambda user: user.id)

    def get_by_username(self, username: str) -> User:
        user = self._users.get(username)
        if user is None:
            raise NotFound(f"No user named {username}")
        return user

    def get(self, user_id: int) -> User:
        for user in self._users.values():
            if user.id == user_id:
                return user
        raise NotFound(f"No user with ID {user_id}")

    def lookup_user(self, user_id: int) -> UserIdentity:
        """Identity and anonymity preference of a user, or NotFound."""
        return self.get(user_id).identity

    def signup(
        self,
        username: str,
        password: str,
        name: str = "",
        email: str = "",
        allows_anonymous: bool = True,
    ) -> User:
        """Register a new user and append it to the users file."""
        if username in self._users:
            raise UsernameTaken(f"Username already taken: {username}")
        if not password:
            raise InvalidInput("Password must not be empty")

        try:
            user = User(
                id=self._next_id + 1,
                username=username,
                password_hash=get_password_hash(password),
                name=name,
                email=email,
                allows_anonymous=allows_anonymous,
            )
        except PydanticValidationError as e:
            raise InvalidInput(f"Invalid user data: {e.errors()[0]['msg']}") from e

        self._next_id = user.id
        self._users[user.username] = user
        write_file_lines(self.path, [encode_user(user)], append=True)
        logger.info(f"Registered user {user.id} ({user.username})")
        return user

    def login(self, username: str, password: str) -> User:
        user = self._users.get(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.info(f"Failed login for {username}")
            raise InvalidCredentials()
        return user
