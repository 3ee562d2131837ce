"""Configuration for pytest."""
import pytest

from askbox.config import Settings
from askbox.repositories import QuestionStore, UserDirectory
from askbox.services.question_service import QuestionService


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at an empty temporary data directory."""
    return Settings(data_dir=tmp_path)


@pytest.fixture
def question_store(settings):
    store = QuestionStore(settings.questions_path)
    store.load()
    return store


@pytest.fixture
def user_directory(settings):
    directory = UserDirectory(settings.users_path)
    directory.load()
    return directory


@pytest.fixture
def service(settings, question_store, user_directory):
    """QuestionService over temporary files with three registered users.

    alice (1) and carol (3) accept anonymous questions, bob (2) does not.
    """
    user_directory.signup("alice", "pw-alice", name="Alice", email="alice@example.com")
    user_directory.signup("bob", "pw-bob", name="Bob", email="bob@example.com", allows_anonymous=False)
    user_directory.signup("carol", "pw-carol", name="Carol", email="carol@example.com")
    return QuestionService(settings, question_store=question_store, user_directory=user_directory)
