"""Exceptions raised by the quiz and analytics flow."""


class StudyBuddyError(Exception):
    """Base class for all application errors."""


class InsufficientContent(StudyBuddyError):
    """Not enough flashcards to build a quiz."""

    def __init__(self, available: int, required: int):
        self.available = available
        self.required = required
        super().__init__(
            f"You need at least {required} flashcards to start a quiz (you have {available})"
        )


class QuizNotFound(StudyBuddyError):
    """No stored quiz with that id belongs to the user, or it has no questions."""


class InvalidSessionState(StudyBuddyError):
    """A quiz session transition was requested from a state that forbids it."""


class PersistenceFailure(StudyBuddyError):
    """A quiz result could not be written to the data store."""


class AnalyticsUpdateFailure(StudyBuddyError):
    """A performance analytics row could not be updated."""
