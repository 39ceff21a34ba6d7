"""
Exceptions raised while fetching questions.

All of them are converted to the ``{"error": ...}`` response shape by the
handler, so ``str(exc)`` is the text the caller sees.
"""


class FetchQuestionsError(Exception):
    """Base class for every failure the handler reports."""


class ValidationError(FetchQuestionsError):
    """A required field of the input event is absent or malformed."""


class SessionItemError(ValidationError):
    """The session item is present but missing one of its attributes."""

    def __init__(self, detail: str):
        super().__init__(f"Session item was malformed : {detail}")


class CollaboratorError(FetchQuestionsError):
    """A retrieval, filter or store call failed."""


class QuestionsRetrievalError(CollaboratorError):
    pass


class SaveQuestionsError(CollaboratorError):
    pass


class SavedQuestionsConflictError(SaveQuestionsError):
    """Another invocation already saved questions for this session."""
