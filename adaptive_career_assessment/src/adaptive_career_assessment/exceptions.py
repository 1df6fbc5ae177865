"""
Assessment Exceptions

Error taxonomy for the assessment flow. Every error the controller recovers
from derives from AssessmentError and carries a human-readable message that
can be shown to the user as-is.
"""

from typing import Optional


class AssessmentError(Exception):
    """Base class for assessment errors."""

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            original_exception: Underlying exception, if any
        """
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception


class StoreError(AssessmentError):
    """Persistence store rejected an operation (e.g. session creation)."""


class CollaboratorError(AssessmentError):
    """Question generation, answer evaluation or profiling failed."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        original_exception: Optional[Exception] = None
    ):
        """
        Initialize the collaborator error.

        Args:
            message: Human-readable error message
            status_code: HTTP status to surface for this failure (None → 500)
            original_exception: Underlying exception, if any
        """
        super().__init__(message, original_exception)
        self.status_code = status_code


class ResponseParseError(CollaboratorError):
    """Collaborator response was not well-formed JSON."""


class InvalidTransitionError(AssessmentError):
    """Action is not allowed in the session's current status."""


class AssessmentValidationError(AssessmentError):
    """Assessment start parameters are out of bounds."""
