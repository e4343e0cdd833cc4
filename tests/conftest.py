"""
Pytest configuration and shared fixtures for the test suite.
"""

import hashlib
import json
from typing import Dict, List, Optional, Tuple

import pytest
from eth_account import Account as EthAccount

from txsubmit.config import SubmitterConfig
from txsubmit.core.options import Account, RawTransaction, SignedTransaction
from txsubmit.node.interface import (
    BlockHeader,
    BlockRef,
    NodeConnectionError,
    NodeInterface,
)
from txsubmit.tx.keystore import (
    AccountLockedError,
    InvalidPassphraseError,
    KeyManager,
)


SENDER = "0x1111111111111111111111111111111111111111"
RECIPIENT = "0x2222222222222222222222222222222222222222"
PASSPHRASE = "test123456"

# Well-known throwaway key from the eth-account documentation
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> SubmitterConfig:
    """Create a test configuration."""
    return SubmitterConfig(
        rpc_url="http://node.test:8545",
        request_timeout_seconds=5,
        log_level="DEBUG",
    )


# ============================================================================
# Mock Node Interface
# ============================================================================

class MockNodeInterface(NodeInterface):
    """
    Mock node interface for testing.

    Every call is appended to `calls` (shared with the mock key manager so
    the relative order of node and signing calls can be asserted). Setting
    `failures[method]` makes that method raise the given exception.
    """

    def __init__(self, calls: Optional[List[str]] = None):
        self.calls: List[str] = calls if calls is not None else []
        self.balances: Dict[str, int] = {}
        self.nonces: Dict[str, int] = {}
        self.gas_price = 20_000_000_000
        self.gas_tip_cap = 1_500_000_000
        self.network_id = 1337
        self.submitted: List[bytes] = []
        self.failures: Dict[str, Exception] = {}

    def _record(self, method: str) -> None:
        self.calls.append(method)
        if method in self.failures:
            raise self.failures[method]

    def set_balance(self, address: str, balance: int) -> None:
        self.balances[address.lower()] = balance

    def connect(self) -> None:
        pass

    def close(self) -> None:
        pass

    def accounts(self) -> List[str]:
        self._record("accounts")
        return list(self.balances)

    def balance_at(self, address: str, block: BlockRef = "latest") -> int:
        self._record("balance_at")
        return self.balances.get(address.lower(), 0)

    def pending_nonce_at(self, address: str) -> int:
        self._record("pending_nonce_at")
        return self.nonces.get(address.lower(), 0)

    def suggest_gas_price(self) -> int:
        self._record("suggest_gas_price")
        return self.gas_price

    def suggest_gas_tip_cap(self) -> int:
        self._record("suggest_gas_tip_cap")
        return self.gas_tip_cap

    def chain_id(self) -> int:
        self._record("chain_id")
        return self.network_id

    def header_by_number(self, number: Optional[int] = None) -> BlockHeader:
        self._record("header_by_number")
        return BlockHeader(
            number=number if number is not None else 100,
            block_hash="0x" + "ab" * 32,
            parent_hash="0x" + "cd" * 32,
            timestamp=1_700_000_000,
            gas_limit=30_000_000,
            gas_used=21_000,
            base_fee_per_gas=7,
        )

    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        self._record("send_raw_transaction")
        self.submitted.append(raw_transaction)
        return "0x" + hashlib.sha256(raw_transaction).hexdigest()

    def bump_nonce(self, address: str) -> None:
        """Simulate a pending transaction landing in the mempool."""
        key = address.lower()
        self.nonces[key] = self.nonces.get(key, 0) + 1


class BroadcastingNode(MockNodeInterface):
    """Mock node whose pending nonce advances on every accepted broadcast."""

    def __init__(self, calls: Optional[List[str]] = None):
        super().__init__(calls)
        self.broadcast_sender = SENDER

    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        tx_hash = super().send_raw_transaction(raw_transaction)
        self.bump_nonce(self.broadcast_sender)
        return tx_hash


# ============================================================================
# Mock Key Manager
# ============================================================================

class MockKeyManager(KeyManager):
    """Key manager that 'signs' by hashing the transaction fields."""

    def __init__(self, calls: Optional[List[str]] = None, passphrase: str = PASSPHRASE):
        self.calls: List[str] = calls if calls is not None else []
        self.passphrase = passphrase
        self.unlocked: set = set()
        self.signed: List[Tuple[RawTransaction, int]] = []
        self.sign_error: Optional[Exception] = None

    def accounts(self) -> List[Account]:
        return [Account(address=SENDER)]

    def unlock(self, account: Account, passphrase: str) -> None:
        self.calls.append("unlock")
        if passphrase != self.passphrase:
            raise InvalidPassphraseError("Invalid passphrase for key file")
        self.unlocked.add(account.address.lower())

    def lock(self, account: Account) -> None:
        self.unlocked.discard(account.address.lower())

    def is_unlocked(self, account: Account) -> bool:
        return account.address.lower() in self.unlocked

    def sign_transaction(
        self,
        account: Account,
        raw_tx: RawTransaction,
        chain_id: int,
    ) -> SignedTransaction:
        self.calls.append("sign_transaction")
        if self.sign_error is not None:
            raise self.sign_error
        if not self.is_unlocked(account):
            raise AccountLockedError(f"Account {account.address} is locked")

        self.signed.append((raw_tx, chain_id))
        payload = json.dumps({**raw_tx.to_dict(), "chainId": chain_id}, sort_keys=True).encode()
        return SignedTransaction(
            raw_transaction=payload,
            tx_hash="0x" + hashlib.sha256(payload).hexdigest(),
        )


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def calls() -> List[str]:
    """Shared, ordered call log for the node and key manager mocks."""
    return []


@pytest.fixture
def mock_node(calls) -> MockNodeInterface:
    """Create a mock node with a funded sender."""
    node = MockNodeInterface(calls)
    node.set_balance(SENDER, 1000)
    node.nonces[SENDER.lower()] = 4
    return node


@pytest.fixture
def broadcasting_node(calls) -> BroadcastingNode:
    """Create a mock node whose nonce advances after each broadcast."""
    node = BroadcastingNode(calls)
    node.set_balance(SENDER, 10**18)
    return node


@pytest.fixture
def mock_key_manager(calls) -> MockKeyManager:
    """Create a mock key manager sharing the call log."""
    return MockKeyManager(calls)


@pytest.fixture
def sender() -> Account:
    return Account(address=SENDER)


@pytest.fixture
def failing_node(mock_node):
    """Factory that makes one node method raise NodeConnectionError."""
    def make(method: str) -> MockNodeInterface:
        mock_node.failures[method] = NodeConnectionError(f"{method} unavailable")
        return mock_node
    return make


# ============================================================================
# Key File Fixtures
# ============================================================================

@pytest.fixture
def keystore_dir(tmp_path):
    """Directory holding one pbkdf2 key file for TEST_PRIVATE_KEY."""
    local = EthAccount.from_key(TEST_PRIVATE_KEY)
    keyfile = EthAccount.encrypt(TEST_PRIVATE_KEY, PASSPHRASE, kdf="pbkdf2", iterations=2)

    directory = tmp_path / "keystore"
    directory.mkdir()
    path = directory / f"UTC--2024-01-01T00-00-00.000000Z--{local.address[2:].lower()}"
    path.write_text(json.dumps(keyfile))
    return directory


@pytest.fixture
def keyfile_account() -> Account:
    return Account(address=EthAccount.from_key(TEST_PRIVATE_KEY).address)
