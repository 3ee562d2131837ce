"""Repository modules for the flat-file data stores.

All repository classes are re-exported here for convenient imports.
"""
from askbox.repositories.question import QuestionStore
from askbox.repositories.user import UserDirectory

__all__ = [
    "QuestionStore",
    "UserDirectory",
]
