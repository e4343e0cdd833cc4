"""
Submission error taxonomy.

Every failure of the pipeline is one of these. Each carries the step that
failed and the underlying cause so callers can log a precise reason.
"""

from enum import Enum
from typing import Optional


class SubmissionStep(str, Enum):
    """Pipeline step in which a failure happened."""
    UNLOCK = "unlock"
    BALANCE = "balance"
    CHAIN_ID = "chain_id"
    RESOLVE = "resolve"
    SIGN = "sign"
    BROADCAST = "broadcast"


class SubmissionError(Exception):
    """Base class for all submission failures."""

    step: SubmissionStep

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
        # Set by the orchestrator to the rejected Submission record
        self.submission = None


class AuthError(SubmissionError):
    """The sender's key could not be unlocked."""
    step = SubmissionStep.UNLOCK


class QueryFailed(SubmissionError):
    """A read from the node failed."""

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        step: SubmissionStep = SubmissionStep.BALANCE,
    ):
        super().__init__(message, cause)
        self.step = step


class InsufficientFunds(SubmissionError):
    """Sender balance does not exceed the amount being sent."""
    step = SubmissionStep.BALANCE

    def __init__(self, balance: int, required: int):
        super().__init__(f"no enough balance, balance: {balance}, required: more than {required}")
        self.balance = balance
        self.required = required


class DefaultResolutionFailed(SubmissionError):
    """Fetching a default value for an unset field failed."""
    step = SubmissionStep.RESOLVE

    def __init__(self, field: str, cause: BaseException):
        super().__init__(f"could not resolve default for {field}: {cause}", cause)
        self.field = field


class SigningFailed(SubmissionError):
    """The key manager could not sign the transaction."""
    step = SubmissionStep.SIGN


class BroadcastFailed(SubmissionError):
    """The node rejected the signed transaction or could not be reached."""
    step = SubmissionStep.BROADCAST

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        error_code: Optional[int] = None,
    ):
        super().__init__(message, cause)
        self.error_code = error_code
