"""Session-level question handling on behalf of a logged-in user."""
import logging
from typing import Dict, List, Optional

from askbox.config import Settings, get_settings
from askbox.models.schemas import Question, User
from askbox.repositories import QuestionStore, UserDirectory
from askbox.utils.exceptions import NotRecipient

logger = logging.getLogger(__name__)


class QuestionService:
    """Service for handling question-related business logic.

    Every operation takes the acting user's id explicitly; the service keeps
    no notion of a current user.
    """

    def __init__(
        self,
        settings: Settings = None,
        question_store: QuestionStore = None,
        user_directory: UserDirectory = None,
    ):
        settings = settings or get_settings()
        self.question_store = question_store or QuestionStore(settings.questions_path)
        self.user_directory = user_directory or UserDirectory(settings.users_path)

    def refresh(self) -> None:
        """Reload users and questions from disk."""
        self.user_directory.load()
        self.question_store.load()

    def _question_for_recipient(self, current_user_id: int, question_id: int) -> Question:
        question = self.question_store.get(question_id)
        if question.to_user_id != current_user_id:
            raise NotRecipient(f"Question {question_id} wasn't directed to you")
        return question

    def resolve_thread_parent(self, parent_id: Optional[int]) -> int:
        """Validate a thread to reply in; -1 means a new thread."""
        return self.question_store.check_parent(parent_id)

    def recipient_allows_anonymous(self, to_user_id: int) -> bool:
        return self.user_directory.lookup_user(to_user_id).allows_anonymous

    def ask_question(
        self,
        current_user_id: int,
        to_user_id: int,
        text: str,
        anonymous: bool = False,
        parent_id: Optional[int] = None,
    ) -> Question:
        """Ask a question, silently dropping anonymity the recipient does not accept."""
        recipient = self.user_directory.lookup_user(to_user_id)
        if anonymous and not recipient.allows_anonymous:
            logger.info(f"User {to_user_id} does not accept anonymous questions; asking openly")
            anonymous = False

        return self.question_store.ask(
            from_user_id=current_user_id,
            to_user_id=recipient.id,
            anonymous=anonymous,
            parent_id=parent_id,
            text=text,
        )

    def answer_question(self, current_user_id: int, question_id: int, text: str) -> bool:
        """Answer a question addressed to the user; True if an answer was replaced."""
        self._question_for_recipient(current_user_id, question_id)
        return self.question_store.answer(question_id, text)

    def delete_question(self, current_user_id: int, question_id: int) -> List[int]:
        """Delete a question addressed to the user, with its thread if it is a root."""
        self._question_for_recipient(current_user_id, question_id)
        return self.question_store.delete(question_id)

    def get_question(self, current_user_id: int, question_id: int) -> Question:
        """A question addressed to the user, for display before answering."""
        return self._question_for_recipient(current_user_id, question_id)

    def questions_to_me(self, current_user_id: int) -> Dict[int, List[Question]]:
        return {
            root_id: [self.question_store.get(qid) for qid in ids]
            for root_id, ids in self.question_store.questions_to_user(current_user_id).items()
        }

    def questions_from_me(self, current_user_id: int) -> List[Question]:
        return [self.question_store.get(qid) for qid in self.question_store.questions_from_user(current_user_id)]

    def feed(self) -> List[Question]:
        return self.question_store.feed()

    def list_users(self) -> List[User]:
        return self.user_directory.list_users()
