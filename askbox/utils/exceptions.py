"""Custom exceptions for the askbox question service."""


class AskboxError(Exception):
    """Base class for every recoverable askbox error."""

    default_detail = "Operation failed"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class StorageUnavailable(AskboxError):
    """A data file cannot be opened for reading or writing."""
    default_detail = "Storage unavailable"


class InvalidRecordFormat(AskboxError):
    """A stored line does not decode into a well-formed record."""
    default_detail = "Invalid record format"


class NotFound(AskboxError):
    """A referenced question, thread or user does not exist."""
    default_detail = "Not found"


class InvalidParent(AskboxError):
    """A reply names a parent that is not an existing thread root."""
    default_detail = "No thread question with such ID"


class InvalidInput(AskboxError):
    """Input validation errors."""
    default_detail = "Invalid input"


class NotRecipient(AskboxError):
    """The question was not directed to the acting user."""
    default_detail = "This question wasn't directed to you"


class UsernameTaken(AskboxError):
    default_detail = "Username already taken"


class InvalidCredentials(AskboxError):
    default_detail = "Invalid username or password"
