"""Interactive menu console for the question service.

All input validation and retry loops live here; the service and stores
only ever raise typed errors.
"""
import logging
from typing import Callable, List, Optional

from askbox.models.schemas import NO_PARENT, Question, User
from askbox.services.question_service import QuestionService
from askbox.utils.exceptions import (
    InvalidCredentials,
    InvalidInput,
    InvalidParent,
    NotFound,
    NotRecipient,
    UsernameTaken,
)

logger = logging.getLogger(__name__)

CANCEL = -1

ACCESS_MENU = ["Login", "Sign Up", "Exit"]

SESSION_MENU = [
    "View Questions To Me",
    "View Questions From Me",
    "Answer Question",
    "Delete Question",
    "Ask Question",
    "List System Users",
    "View Feed",
    "Logout",
]


def format_question(question: Question, to_me: bool) -> str:
    """Render a question for the recipient (to_me) or for its author."""
    prefix = "" if question.is_thread_root else "\tThread: "
    line = f"{prefix}Question ID ({question.id})"

    if to_me:
        if not question.anonymous:
            line += f" from user ID({question.from_user_id})"
        line += f"\tQuestion: {question.text}"
        if question.is_answered:
            line += f"\n{prefix}\tAnswer: {question.answer}"
        return line

    if question.anonymous:
        line += " !Anonymous"
    line += f" to user ID({question.to_user_id})\tQuestion: {question.text}"
    line += f"\tAnswer: {question.answer}" if question.is_answered else "\tNOT Answered YET"
    return line


def format_feed_item(question: Question) -> str:
    line = ""
    if not question.is_thread_root:
        line += f"Thread Parent Question ID ({question.parent_id}) "
    line += f"Question ID ({question.id})"
    if not question.anonymous:
        line += f" from user ID({question.from_user_id})"
    line += f" to user ID({question.to_user_id})\tQuestion: {question.text}"
    if question.is_answered:
        line += f"\n\tAnswer: {question.answer}"
    return line


class Console:
    """Menu-driven front end; one instance serves one terminal."""

    def __init__(
        self,
        service: QuestionService,
        input_func: Callable[[str], str] = None,
        print_func: Callable[..., None] = None,
    ):
        self.service = service
        self._input = input_func or input
        self._print = print_func or print

    # Input helpers

    def read_line(self, prompt: str) -> str:
        return self._input(prompt).strip()

    def read_int(self, low: int, high: int, prompt: str = None) -> int:
        """Read an integer in [low, high], asking again until one is given."""
        prompt = prompt or f"\nEnter number in range {low} - {high}: "
        while True:
            raw = self.read_line(prompt)
            try:
                value = int(raw)
            except ValueError:
                value = None
            if value is not None and low <= value <= high:
                return value
            self._print("ERROR: Invalid number. Try again")

    def read_id(self, prompt: str) -> int:
        while True:
            try:
                return int(self.read_line(prompt))
            except ValueError:
                self._print("ERROR: Please enter a number. Try again")

    def show_menu(self, choices: List[str]) -> int:
        self._print("\nMenu:")
        for number, choice in enumerate(choices, start=1):
            self._print(f"\t{number}: {choice}")
        return self.read_int(1, len(choices))

    # Access

    def login(self) -> Optional[User]:
        username = self.read_line("Enter username: ")
        password = self.read_line("Enter password: ")
        try:
            return self.service.user_directory.login(username, password)
        except InvalidCredentials as e:
            self._print(f"\n{e.detail}. Try again.\n")
            return None

    def signup(self) -> Optional[User]:
        while True:
            username = self.read_line("Enter username (no spaces): ")
            try:
                self.service.user_directory.get_by_username(username)
            except NotFound:
                break
            self._print("Username already taken. Try another.")

        password = self.read_line("Enter password: ")
        name = self.read_line("Enter name: ")
        email = self.read_line("Enter email: ")
        allows_anonymous = self.read_int(0, 1, "Allow anonymous questions? (0 or 1): ")
        try:
            return self.service.user_directory.signup(
                username, password, name=name, email=email, allows_anonymous=bool(allows_anonymous)
            )
        except (UsernameTaken, InvalidInput) as e:
            self._print(f"ERROR: {e.detail}")
            return None

    def access(self) -> Optional[User]:
        """Run the access menu until a user is logged in; None means exit."""
        while True:
            choice = self.show_menu(ACCESS_MENU)
            self.service.refresh()
            if choice == 1:
                user = self.login()
                if user:
                    return user
            elif choice == 2:
                user = self.signup()
                if user:
                    return user
            else:
                return None

    # Session actions

    def view_questions_to_me(self, user: User) -> None:
        threads = self.service.questions_to_me(user.id)
        if not threads:
            self._print("\nNo questions to you.")
            return
        self._print("")
        for questions in threads.values():
            for question in questions:
                self._print(format_question(question, to_me=True) + "\n")

    def view_questions_from_me(self, user: User) -> None:
        questions = self.service.questions_from_me(user.id)
        if not questions:
            self._print("\nYou haven't asked any questions.")
            return
        self._print("")
        for question in questions:
            self._print(format_question(question, to_me=False) + "\n")

    def read_question_for_me(self, user: User) -> Optional[Question]:
        while True:
            question_id = self.read_id("Enter Question ID or -1 to cancel: ")
            if question_id == CANCEL:
                return None
            try:
                return self.service.get_question(user.id, question_id)
            except (NotFound, NotRecipient) as e:
                self._print(f"\nERROR: {e.detail}. Try again\n")

    def answer_question(self, user: User) -> None:
        question = self.read_question_for_me(user)
        if question is None:
            return
        self._print(format_question(question, to_me=True))
        if question.is_answered:
            self._print("\nWarning: Already answered. Answer will be updated")
        answer = self.read_line("Enter answer: ")
        self.service.answer_question(user.id, question.id, answer)

    def delete_question(self, user: User) -> None:
        question = self.read_question_for_me(user)
        if question is None:
            return
        removed = self.service.delete_question(user.id, question.id)
        self._print(f"Deleted question(s): {', '.join(str(qid) for qid in removed)}")

    def read_recipient(self) -> Optional[int]:
        while True:
            user_id = self.read_id("Enter User ID or -1 to cancel: ")
            if user_id == CANCEL:
                return None
            try:
                self.service.user_directory.lookup_user(user_id)
                return user_id
            except NotFound:
                self._print("Invalid User ID. Try again.")

    def read_thread_parent(self) -> int:
        while True:
            parent_id = self.read_id("For thread question: Enter Question ID or -1 for new question: ")
            try:
                return self.service.resolve_thread_parent(parent_id)
            except InvalidParent:
                self._print("No thread question with such ID. Try again")

    def ask_question(self, user: User) -> None:
        to_user_id = self.read_recipient()
        if to_user_id is None:
            return

        if self.service.recipient_allows_anonymous(to_user_id):
            anonymous = bool(self.read_int(0, 1, "Ask anonymously? (0 or 1): "))
        else:
            self._print("Note: Anonymous questions are not allowed for this user")
            anonymous = False

        parent_id = self.read_thread_parent()
        text = self.read_line("Enter question text: ")
        try:
            question = self.service.ask_question(
                user.id, to_user_id, text, anonymous=anonymous,
                parent_id=None if parent_id == NO_PARENT else parent_id,
            )
        except InvalidInput as e:
            self._print(f"ERROR: {e.detail}")
            return
        self._print(f"Question ID ({question.id}) sent.")

    def list_users(self) -> None:
        self._print("\nSystem Users:")
        for user in self.service.list_users():
            self._print(f"ID: {user.id}\tName: {user.name}")

    def view_feed(self) -> None:
        questions = self.service.feed()
        if not questions:
            self._print("No answered questions in the feed.")
            return
        for question in questions:
            self._print(format_feed_item(question))

    def session(self, user: User) -> None:
        """Run the session menu until the user logs out."""
        actions = {
            1: self.view_questions_to_me,
            2: self.view_questions_from_me,
            3: self.answer_question,
            4: self.delete_question,
            5: self.ask_question,
            6: lambda _user: self.list_users(),
            7: lambda _user: self.view_feed(),
        }
        while True:
            choice = self.show_menu(SESSION_MENU)
            if choice == len(SESSION_MENU):
                return
            self.service.refresh()
            try:
                actions[choice](user)
            except (InvalidInput, NotFound, NotRecipient, InvalidParent) as e:
                self._print(f"ERROR: {e.detail}")

    def run(self) -> None:
        while True:
            user = self.access()
            if user is None:
                return
            logger.info(f"User {user.id} logged in")
            self.session(user)
