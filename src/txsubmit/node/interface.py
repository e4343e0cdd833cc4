"""
Abstract interface for node access.

Defines the contract for blockchain access that all node adapters must implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Union


BlockRef = Union[int, str]


@dataclass
class BlockHeader:
    """Subset of a block header returned by the node."""
    number: int
    block_hash: str
    parent_hash: str
    timestamp: int
    gas_limit: int
    gas_used: int
    base_fee_per_gas: Optional[int] = None  # Absent before the London fork


class NodeInterface(ABC):
    """
    Abstract interface for node access.

    This interface defines all blockchain operations needed by the submitter:
    - Account state queries (balance, pending nonce)
    - Fee suggestions
    - Chain identification
    - Raw transaction broadcast

    Implementations must be safe to share between concurrent submissions or
    be serialized by the caller.
    """

    @abstractmethod
    def connect(self) -> None:
        """
        Establish connection to the node.

        Raises:
            NodeConnectionError: If connection cannot be established
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close connection to the node."""
        pass

    @abstractmethod
    def accounts(self) -> List[str]:
        """
        List the accounts managed by the node itself.

        Returns:
            Hex addresses reported by the node
        """
        pass

    @abstractmethod
    def balance_at(self, address: str, block: BlockRef = "latest") -> int:
        """
        Get the balance of an account.

        Args:
            address: Hex address
            block: Block number or tag ("latest", "pending", ...)

        Returns:
            Balance in wei
        """
        pass

    @abstractmethod
    def pending_nonce_at(self, address: str) -> int:
        """
        Get the next nonce for an account, counting pending transactions.

        Args:
            address: Hex address

        Returns:
            Nonce to use for the next transaction
        """
        pass

    @abstractmethod
    def suggest_gas_price(self) -> int:
        """
        Get the node's legacy gas price suggestion.

        Returns:
            Gas price in wei
        """
        pass

    @abstractmethod
    def suggest_gas_tip_cap(self) -> int:
        """
        Get the node's priority fee suggestion for dynamic-fee transactions.

        Returns:
            Tip cap in wei
        """
        pass

    @abstractmethod
    def chain_id(self) -> int:
        """
        Get the chain identifier used for replay protection.

        Returns:
            Chain ID
        """
        pass

    @abstractmethod
    def header_by_number(self, number: Optional[int] = None) -> BlockHeader:
        """
        Get a block header.

        Args:
            number: Block number, or None for the latest block

        Returns:
            The block header
        """
        pass

    @abstractmethod
    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        """
        Broadcast a signed transaction.

        Args:
            raw_transaction: Signed, serialized transaction

        Returns:
            Transaction hash

        Raises:
            TransactionSubmitError: If the node rejects the transaction
        """
        pass


class NodeConnectionError(Exception):
    """Raised when a node query fails."""
    pass


class TransactionSubmitError(Exception):
    """Raised when transaction submission fails."""

    def __init__(self, message: str, error_code: Optional[int] = None):
        super().__init__(message)
        self.error_code = error_code
