"""Question store: every question, the thread index and the questions file."""
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from askbox.codec import decode_question, encode_question
from askbox.models.schemas import NO_PARENT, Question, ThreadIndex
from askbox.storage import read_file_lines, write_file_lines
from askbox.utils.exceptions import (
    InvalidInput,
    InvalidParent,
    InvalidRecordFormat,
    NotFound,
    StorageUnavailable,
)

logger = logging.getLogger(__name__)


class QuestionStore:
    """Owns all questions and the thread index, backed by one flat file.

    The file is the source of truth: ``load()`` rebuilds everything from it
    and every mutating operation ends with a full ``save()``.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._questions: Dict[int, Question] = {}
        self._threads: ThreadIndex = {}
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._questions)

    def __contains__(self, question_id: int) -> bool:
        return question_id in self._questions

    @property
    def next_id(self) -> int:
        """Highest id handed out so far; the next question gets next_id + 1."""
        return self._next_id

    @property
    def thread_index(self) -> ThreadIndex:
        return {root_id: list(members) for root_id, members in self._threads.items()}

    def load(self) -> None:
        """Replace in-memory state with the contents of the questions file."""
        self._questions = {}
        self._next_id = 0

        try:
            lines = read_file_lines(self.path)
        except StorageUnavailable as e:
            logger.warning(f"{e.detail}; starting with an empty question store")
            lines = []

        for line_no, line in enumerate(lines, start=1):
            try:
                question = decode_question(line)
            except InvalidRecordFormat as e:
                logger.warning(f"Skipping line {line_no} of {self.path}: {e.detail}")
                continue
            if question.id in self._questions:
                logger.warning(f"Duplicate question ID {question.id} on line {line_no}, keeping the later one")
            self._questions[question.id] = question
            self._next_id = max(self._next_id, question.id)

        self._reindex()
        logger.info(f"Loaded {len(self._questions)} questions in {len(self._threads)} threads from {self.path}")

    def save(self) -> None:
        """Rewrite the questions file with every question, ascending by id."""
        lines = [encode_question(self._questions[qid]) for qid in sorted(self._questions)]
        write_file_lines(self.path, lines, append=False)
        logger.debug(f"Saved {len(lines)} questions to {self.path}")

    def _reindex(self) -> None:
        threads: ThreadIndex = {}
        for question_id in sorted(self._questions):
            question = self._questions[question_id]
            threads.setdefault(question.thread_id, []).append(question_id)
        for root_id in threads:
            root = self._questions.get(root_id)
            if root is None or not root.is_thread_root:
                logger.warning(f"Thread {root_id} has no root question")
        self._threads = threads

    def get(self, question_id: int) -> Question:
        question = self._questions.get(question_id)
        if question is None:
            raise NotFound(f"No question with ID {question_id}")
        return question

    def is_thread_root(self, question_id: int) -> bool:
        question = self._questions.get(question_id)
        return question is not None and question.is_thread_root

    def thread(self, root_id: int) -> List[Question]:
        """Questions of one thread in display order, root first."""
        if root_id not in self._threads:
            raise NotFound(f"No thread with ID {root_id}")
        return [self._questions[qid] for qid in self._threads[root_id]]

    def check_parent(self, parent_id: Optional[int]) -> int:
        """Normalize a requested parent id, raising InvalidParent if it is unusable.

        ``None`` and ``-1`` both mean "start a new thread".
        """
        if parent_id is None or parent_id == NO_PARENT:
            return NO_PARENT
        if not self.is_thread_root(parent_id):
            raise InvalidParent(f"No thread question with ID {parent_id}")
        return parent_id

    def ask(
        self,
        from_user_id: int,
        to_user_id: int,
        anonymous: bool,
        parent_id: Optional[int],
        text: str,
    ) -> Question:
        """Create a question, index it under its thread and persist."""
        parent_id = self.check_parent(parent_id)
        try:
            question = Question(
                id=self._next_id + 1,
                parent_id=parent_id,
                from_user_id=from_user_id,
                to_user_id=to_user_id,
                anonymous=anonymous,
                text=text,
            )
        except PydanticValidationError as e:
            raise InvalidInput(f"Invalid question: {e.errors()[0]['msg']}") from e

        self._next_id = question.id
        self._questions[question.id] = question
        self._reindex()
        logger.info(f"Question {question.id} asked by user {from_user_id} to user {to_user_id} in thread {question.thread_id}")
        self.save()
        return question

    def answer(self, question_id: int, text: str) -> bool:
        """Set or overwrite the answer of a question and persist.

        Returns True when a previous answer was overwritten.
        """
        question = self.get(question_id)
        if not text or not text.strip():
            raise InvalidInput("Answer must not be empty")
        overwritten = question.is_answered
        try:
            question.answer = text
        except PydanticValidationError as e:
            raise InvalidInput(f"Invalid answer: {e.errors()[0]['msg']}") from e

        if overwritten:
            logger.warning(f"Question {question_id} was already answered; answer updated")
        self.save()
        return overwritten

    def delete(self, question_id: int) -> List[int]:
        """Delete a question and persist; a thread root takes its whole thread with it.

        Returns the removed question ids.
        """
        question = self.get(question_id)
        if question.is_thread_root:
            removed = list(self._threads.get(question_id, [question_id]))
        else:
            removed = [question_id]

        for qid in removed:
            del self._questions[qid]
        self._reindex()
        logger.info(f"Deleted questions {removed}")
        self.save()
        return removed

    def questions_to_user(self, user_id: int) -> Dict[int, List[int]]:
        """Ids of questions addressed to a user, grouped by thread root."""
        result: Dict[int, List[int]] = {}
        for root_id, members in self._threads.items():
            for qid in members:
                if self._questions[qid].to_user_id == user_id:
                    result.setdefault(root_id, []).append(qid)
        return result

    def questions_from_user(self, user_id: int) -> List[int]:
        """Ids of questions a user asked, ascending."""
        return [qid for qid in sorted(self._questions) if self._questions[qid].from_user_id == user_id]

    def orphaned_replies(self) -> List[int]:
        """Replies whose thread root is missing or is not a root."""
        return [
            qid for qid in sorted(self._questions)
            if not self._questions[qid].is_thread_root and not self.is_thread_root(self._questions[qid].parent_id)
        ]

    def feed(self) -> List[Question]:
        """All answered questions, ascending by id."""
        return [self._questions[qid] for qid in sorted(self._questions) if self._questions[qid].is_answered]
