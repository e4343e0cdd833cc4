"""
Core submission components.

This module contains the transaction data model, the error taxonomy and the
orchestrator that sequences a submission.
"""

from txsubmit.core.options import (
    Account,
    DynamicFeeOptions,
    Submission,
    SubmissionStatus,
    TransactionOptions,
    TransactionShape,
)
from txsubmit.core.errors import (
    AuthError,
    BroadcastFailed,
    DefaultResolutionFailed,
    InsufficientFunds,
    QueryFailed,
    SigningFailed,
    SubmissionError,
    SubmissionStep,
)
from txsubmit.core.submitter import (
    Submitter,
    send_dynamic_fee_transaction,
    send_legacy_transaction,
)

__all__ = [
    "Account",
    "DynamicFeeOptions",
    "Submission",
    "SubmissionStatus",
    "TransactionOptions",
    "TransactionShape",
    "AuthError",
    "BroadcastFailed",
    "DefaultResolutionFailed",
    "InsufficientFunds",
    "QueryFailed",
    "SigningFailed",
    "SubmissionError",
    "SubmissionStep",
    "Submitter",
    "send_dynamic_fee_transaction",
    "send_legacy_transaction",
]
