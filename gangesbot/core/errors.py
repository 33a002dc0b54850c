"""
Domain failures raised by the support services.

Routes do not catch these; the handlers registered in ``gangesbot.main``
turn them into HTTP responses.
"""
from typing import Optional


class SupportError(Exception):
    """Base class for failures surfaced to the caller."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailure(SupportError):
    """Input rejected before any store call was made."""


class NotFoundFailure(SupportError):
    """Referenced conversation/order/entry is not visible to the current user."""


class RemoteFailure(SupportError):
    """A persistent-store or blob-store call failed.

    ``step`` names the call that failed so callers can tell a failed reply
    append (user message already stored) from a failed user message append.
    """

    def __init__(self, step: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.step = step
        self.cause = cause
