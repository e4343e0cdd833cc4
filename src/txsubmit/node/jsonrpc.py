"""
JSON-RPC adapter for node integration.

Provides blockchain access via the standard eth_* JSON-RPC methods. Transport,
request encoding and result formatting are handled by web3.py.
"""

from decimal import Decimal
from typing import Any, Callable, List, Optional, TypeVar

import structlog
from eth_utils import to_checksum_address, to_hex
from web3 import Web3
from web3.exceptions import BlockNotFound, Web3Exception, Web3RPCError

from txsubmit.config import SubmitterConfig, get_config
from txsubmit.core.options import ETHER
from txsubmit.node.interface import (
    BlockHeader,
    BlockRef,
    NodeInterface,
    NodeConnectionError,
    TransactionSubmitError,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class JsonRpcAdapter(NodeInterface):
    """
    JSON-RPC adapter over a web3.py client.

    Implements the NodeInterface using a blocking Web3 instance. One adapter
    is meant to be created by the caller and passed to every component that
    talks to the node.
    """

    def __init__(
        self,
        config: Optional[SubmitterConfig] = None,
        web3: Optional[Web3] = None,
    ):
        """
        Initialize the JSON-RPC adapter.

        Args:
            config: Submitter configuration. Uses global config if not provided.
            web3: Pre-built client (used by tests to inject a provider)
        """
        self.config = config or get_config()
        self.rpc_url = self.config.rpc_url
        self.w3: Optional[Web3] = web3

    def __enter__(self) -> "JsonRpcAdapter":
        self.connect()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def connect(self) -> None:
        """Create the web3 client."""
        if self.w3 is not None:
            return

        self.w3 = Web3(Web3.HTTPProvider(
            self.rpc_url,
            request_kwargs={"timeout": self.config.request_timeout_seconds},
        ))
        logger.info("jsonrpc_connected", url=self.rpc_url)

    def close(self) -> None:
        """Drop the web3 client."""
        if self.w3 is not None:
            self.w3 = None
            logger.info("jsonrpc_disconnected")

    def _call(self, method: str, fetch: Callable[[Web3], T]) -> T:
        """Run one web3 call, mapping its failures to node errors."""
        if self.w3 is None:
            self.connect()

        try:
            return fetch(self.w3)
        except Web3RPCError as e:
            error = (e.rpc_response or {}).get("error")
            if not isinstance(error, dict):
                error = {}
            message = error.get("message", str(e))
            logger.error("jsonrpc_error", method=method, code=error.get("code"), error=message)
            raise RpcError(message, error.get("code")) from e
        except (OSError, ValueError, Web3Exception) as e:
            logger.error("jsonrpc_request_error", method=method, error=str(e))
            raise NodeConnectionError(f"JSON-RPC request {method} failed: {e}") from e

    def accounts(self) -> List[str]:
        """Get the accounts unlocked on the node."""
        return list(self._call("eth_accounts", lambda w3: w3.eth.accounts) or [])

    def balance_at(self, address: str, block: BlockRef = "latest") -> int:
        """Get account balance in wei."""
        address = to_checksum_address(address)
        return decode_quantity(
            self._call("eth_getBalance", lambda w3: w3.eth.get_balance(address, block))
        )

    def balance_ether(self, address: str, block: BlockRef = "latest") -> Decimal:
        """Get account balance converted to ether."""
        return Decimal(self.balance_at(address, block)) / Decimal(ETHER)

    def pending_nonce_at(self, address: str) -> int:
        """Get the pending transaction count of an account."""
        address = to_checksum_address(address)
        return decode_quantity(
            self._call(
                "eth_getTransactionCount",
                lambda w3: w3.eth.get_transaction_count(address, "pending"),
            )
        )

    def suggest_gas_price(self) -> int:
        """Get the node's gas price suggestion."""
        return decode_quantity(self._call("eth_gasPrice", lambda w3: w3.eth.gas_price))

    def suggest_gas_tip_cap(self) -> int:
        """Get the node's priority fee suggestion."""
        return decode_quantity(
            self._call("eth_maxPriorityFeePerGas", lambda w3: w3.eth.max_priority_fee)
        )

    def chain_id(self) -> int:
        """Get the chain ID."""
        return decode_quantity(self._call("eth_chainId", lambda w3: w3.eth.chain_id))

    def header_by_number(self, number: Optional[int] = None) -> BlockHeader:
        """Get a block header, the latest one when number is None."""
        tag = "latest" if number is None else number
        try:
            block = self._call(
                "eth_getBlockByNumber",
                lambda w3: w3.eth.get_block(tag, full_transactions=False),
            )
        except NodeConnectionError as e:
            if isinstance(e.__cause__, BlockNotFound):
                raise NodeConnectionError(f"Block not found: {tag}") from e.__cause__
            raise

        base_fee = block.get("baseFeePerGas")
        return BlockHeader(
            number=decode_quantity(block["number"]),
            block_hash=to_hex(block["hash"]),
            parent_hash=to_hex(block["parentHash"]),
            timestamp=decode_quantity(block["timestamp"]),
            gas_limit=decode_quantity(block["gasLimit"]),
            gas_used=decode_quantity(block["gasUsed"]),
            base_fee_per_gas=decode_quantity(base_fee) if base_fee is not None else None,
        )

    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        """Broadcast a signed transaction."""
        try:
            tx_hash = self._call(
                "eth_sendRawTransaction",
                lambda w3: w3.eth.send_raw_transaction(raw_transaction),
            )
        except RpcError as e:
            raise TransactionSubmitError(f"Transaction submission failed: {e}", e.code) from e
        except NodeConnectionError as e:
            raise TransactionSubmitError(f"Transaction submission request failed: {e}") from e

        if not tx_hash:
            raise TransactionSubmitError("No transaction hash returned")

        tx_hash = to_hex(tx_hash)
        logger.info("tx_submitted", tx_hash=tx_hash)
        return tx_hash


class RpcError(NodeConnectionError):
    """Raised when the node answers with a JSON-RPC error object."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


def decode_quantity(value: Any) -> int:
    """Check a formatted quantity, decoding it if the node sent raw hex."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if not isinstance(value, str) or not value.startswith("0x"):
        raise NodeConnectionError(f"Invalid quantity in node response: {value!r}")
    try:
        return int(value, 16)
    except ValueError as e:
        raise NodeConnectionError(f"Invalid quantity in node response: {value!r}") from e
