"""
Verification failure taxonomy
"""
from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Why a price verification did not produce a result"""
    EMPTY_INPUT = 'empty_input'
    TRANSPORT_FAILURE = 'transport_failure'
    MALFORMED_RESPONSE = 'malformed_response'


class VerificationError(Exception):
    """
    Raised by the verification client on any failure.

    `cause` keeps the underlying exception for logging; it is never shown to
    the clerk.
    """

    def __init__(self, kind: ErrorKind, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.kind = kind
        self.cause = cause

    def __str__(self) -> str:
        text = super().__str__()
        if self.cause is not None:
            text = f"{text} ({type(self.cause).__name__}: {self.cause})"
        return text
