"""
Transaction option and submission models.

Options are mutable builders handed to override functions; resolved
transactions are frozen and fully populated.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional, Union


WEI = 1
GWEI = 10**9
ETHER = 10**18

DEFAULT_GAS_LIMIT = 21_000


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TransactionShape(str, Enum):
    """Wire shape of a transaction."""
    LEGACY = "legacy"             # Fixed gas price, EIP-155 signed
    DYNAMIC_FEE = "dynamic_fee"   # EIP-1559 fee cap / tip cap


class SubmissionStatus(str, Enum):
    """Status of a submission attempt."""
    PENDING = "pending"           # Created, nothing done yet
    UNLOCKED = "unlocked"         # Sender key unlocked
    FUNDED = "funded"             # Balance gate passed
    RESOLVED = "resolved"         # All parameters have concrete values
    SUBMITTED = "submitted"       # Signed and accepted by the node
    REJECTED = "rejected"         # A step failed, nothing further was attempted


@dataclass(frozen=True)
class Account:
    """An address plus an optional pointer to its key file."""
    address: str
    url: Optional[str] = None

    def __str__(self) -> str:
        return self.address


AccountLike = Union[Account, str]


def as_account(value: AccountLike) -> Account:
    """Wrap a bare address in an Account."""
    if isinstance(value, Account):
        return value
    return Account(address=value)


@dataclass
class TransactionOptions:
    """
    Caller-tunable parameters of a legacy transaction.

    None means "not set"; the resolver fills those fields from the node.
    Zero is a real value.
    """
    gas_price: Optional[int] = None
    gas_limit: Optional[int] = None
    nonce: Optional[int] = None
    data: Optional[bytes] = None


@dataclass
class DynamicFeeOptions:
    """
    Caller-tunable parameters of a dynamic-fee transaction.

    chain_id, to and value are seeded from the call before overrides run.
    """
    chain_id: Optional[int] = None
    nonce: Optional[int] = None
    gas_tip_cap: Optional[int] = None
    gas_fee_cap: Optional[int] = None
    gas_limit: Optional[int] = None
    to: Optional[str] = None
    value: Optional[int] = None
    data: Optional[bytes] = None


Override = Callable[[Any], None]


@dataclass(frozen=True)
class ResolvedLegacyTransaction:
    """Fully populated legacy transaction parameters."""
    nonce: int
    to: str
    value: int
    gas_limit: int
    gas_price: int
    data: bytes
    shape: TransactionShape = TransactionShape.LEGACY


@dataclass(frozen=True)
class ResolvedDynamicFeeTransaction:
    """Fully populated dynamic-fee transaction parameters."""
    chain_id: int
    nonce: int
    to: str
    value: int
    gas_limit: int
    gas_tip_cap: int
    gas_fee_cap: int
    data: bytes
    shape: TransactionShape = TransactionShape.DYNAMIC_FEE


ResolvedTransaction = Union[ResolvedLegacyTransaction, ResolvedDynamicFeeTransaction]


@dataclass(frozen=True)
class RawTransaction:
    """An unsigned transaction ready for the key manager."""
    shape: TransactionShape
    fields: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        """Copy of the transaction fields, keyed the way eth-account expects."""
        return dict(self.fields)

    @property
    def nonce(self) -> int:
        return self.fields["nonce"]


@dataclass(frozen=True)
class SignedTransaction:
    """Opaque signed artifact produced by the key manager."""
    raw_transaction: bytes
    tx_hash: str


@dataclass
class Submission:
    """
    Record of one submission attempt.

    Attributes:
        shape: Which transaction shape was requested
        sender: Sending account
        to: Recipient address
        amount: Value in wei
        status: Current step reached
        resolved: Resolved parameters once available
        tx_hash: Hash returned by the node on success
        error_message: Reason for rejection
    """
    shape: TransactionShape
    sender: Account
    to: str
    amount: int
    status: SubmissionStatus = SubmissionStatus.PENDING
    chain_id: Optional[int] = None
    resolved: Optional[ResolvedTransaction] = None
    tx_hash: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def _advance(self, status: SubmissionStatus) -> None:
        self.status = status
        self.updated_at = _now()

    def mark_unlocked(self) -> None:
        self._advance(SubmissionStatus.UNLOCKED)

    def mark_funded(self) -> None:
        self._advance(SubmissionStatus.FUNDED)

    def mark_resolved(self, resolved: ResolvedTransaction) -> None:
        self.resolved = resolved
        self._advance(SubmissionStatus.RESOLVED)

    def mark_submitted(self, tx_hash: str) -> None:
        self.tx_hash = tx_hash
        self._advance(SubmissionStatus.SUBMITTED)

    def mark_rejected(self, error: str) -> None:
        self.error_message = error
        self._advance(SubmissionStatus.REJECTED)

    @property
    def is_submitted(self) -> bool:
        return self.status == SubmissionStatus.SUBMITTED

    def to_dict(self) -> dict:
        """Convert to dictionary for logging and CLI output."""
        return {
            "shape": self.shape.value,
            "sender": self.sender.address,
            "to": self.to,
            "amount": self.amount,
            "status": self.status.value,
            "chain_id": self.chain_id,
            "nonce": self.resolved.nonce if self.resolved else None,
            "tx_hash": self.tx_hash,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
