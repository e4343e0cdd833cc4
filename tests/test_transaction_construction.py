"""
Test suite for the balance gate, transaction construction and signing.
"""

import pytest

from txsubmit.core.errors import (
    BroadcastFailed,
    InsufficientFunds,
    QueryFailed,
    SigningFailed,
    SubmissionStep,
)
from txsubmit.core.options import (
    ResolvedDynamicFeeTransaction,
    ResolvedLegacyTransaction,
    TransactionShape,
)
from txsubmit.node.interface import NodeConnectionError, TransactionSubmitError
from txsubmit.tx.balance import check_sufficient_balance
from txsubmit.tx.builder import build_dynamic_fee, build_legacy, build_transaction
from txsubmit.tx.keystore import KeyManagerError
from txsubmit.tx.signer import TransactionSigner

from conftest import PASSPHRASE, RECIPIENT


@pytest.fixture
def legacy_tx() -> ResolvedLegacyTransaction:
    return ResolvedLegacyTransaction(
        nonce=4,
        to=RECIPIENT,
        value=500,
        gas_limit=21_000,
        gas_price=20_000_000_000,
        data=b"\xde\xad",
    )


@pytest.fixture
def dynamic_tx() -> ResolvedDynamicFeeTransaction:
    return ResolvedDynamicFeeTransaction(
        chain_id=1337,
        nonce=4,
        to=RECIPIENT,
        value=500,
        gas_limit=21_000,
        gas_tip_cap=1_500_000_000,
        gas_fee_cap=3_000_000_000,
        data=b"",
    )


# ============================================================================
# Test Balance Gate
# ============================================================================

class TestBalanceGate:
    """Tests for the pre-flight balance check."""

    def test_sufficient_balance(self, mock_node, sender):
        assert check_sufficient_balance(mock_node, sender, 999) == 1000

    @pytest.mark.parametrize("amount", [1000, 1001, 10**18])
    def test_insufficient_balance(self, mock_node, sender, amount):
        """Balance must strictly exceed the amount."""
        with pytest.raises(InsufficientFunds) as exc_info:
            check_sufficient_balance(mock_node, sender, amount)

        assert exc_info.value.balance == 1000
        assert exc_info.value.required == amount
        assert exc_info.value.step == SubmissionStep.BALANCE
        assert "balance: 1000" in str(exc_info.value)

    def test_query_failure(self, failing_node, sender):
        with pytest.raises(QueryFailed) as exc_info:
            check_sufficient_balance(failing_node("balance_at"), sender, 1)

        assert exc_info.value.step == SubmissionStep.BALANCE
        assert isinstance(exc_info.value.cause, NodeConnectionError)


# ============================================================================
# Test Transaction Factory
# ============================================================================

class TestTransactionFactory:
    """Tests for building unsigned transactions."""

    def test_build_legacy(self, legacy_tx):
        raw = build_legacy(legacy_tx)

        assert raw.shape == TransactionShape.LEGACY
        assert raw.to_dict() == {
            "nonce": 4,
            "to": RECIPIENT,
            "value": 500,
            "gas": 21_000,
            "gasPrice": 20_000_000_000,
            "data": "0xdead",
        }
        assert raw.nonce == 4

    def test_build_dynamic_fee(self, dynamic_tx):
        raw = build_dynamic_fee(dynamic_tx)
        fields = raw.to_dict()

        assert raw.shape == TransactionShape.DYNAMIC_FEE
        assert fields["type"] == 2
        assert fields["chainId"] == 1337
        assert fields["maxFeePerGas"] == 3_000_000_000
        assert fields["maxPriorityFeePerGas"] == 1_500_000_000
        assert fields["data"] == "0x"
        assert fields["accessList"] == []
        assert "gasPrice" not in fields

    def test_to_dict_is_a_copy(self, legacy_tx):
        raw = build_legacy(legacy_tx)

        fields = raw.to_dict()
        fields["nonce"] = 99

        assert raw.nonce == 4

    def test_dispatch_on_shape(self, legacy_tx, dynamic_tx):
        assert build_transaction(legacy_tx).shape == TransactionShape.LEGACY
        assert build_transaction(dynamic_tx).shape == TransactionShape.DYNAMIC_FEE


# ============================================================================
# Test Signer / Broadcaster
# ============================================================================

class TestTransactionSigner:
    """Tests for signing and broadcast."""

    def test_sign_and_send(self, mock_node, mock_key_manager, sender, legacy_tx, calls):
        mock_key_manager.unlock(sender, PASSPHRASE)
        signer = TransactionSigner(mock_key_manager, mock_node)

        tx_hash = signer.sign_and_send(build_legacy(legacy_tx), sender, 1337)

        assert tx_hash.startswith("0x")
        assert calls == ["unlock", "sign_transaction", "send_raw_transaction"]
        assert mock_key_manager.signed[0][1] == 1337
        assert len(mock_node.submitted) == 1

    def test_locked_account(self, mock_node, mock_key_manager, sender, legacy_tx):
        """Signing without unlocking fails and nothing is broadcast."""
        signer = TransactionSigner(mock_key_manager, mock_node)

        with pytest.raises(SigningFailed) as exc_info:
            signer.sign_and_send(build_legacy(legacy_tx), sender, 1337)

        assert exc_info.value.step == SubmissionStep.SIGN
        assert mock_node.submitted == []

    def test_key_manager_error(self, mock_node, mock_key_manager, sender, dynamic_tx):
        mock_key_manager.unlock(sender, PASSPHRASE)
        mock_key_manager.sign_error = KeyManagerError("hardware wallet unplugged")
        signer = TransactionSigner(mock_key_manager, mock_node)

        with pytest.raises(SigningFailed, match="hardware wallet unplugged"):
            signer.sign_and_send(build_dynamic_fee(dynamic_tx), sender, 1337)

        assert "send_raw_transaction" not in mock_node.calls

    def test_node_rejects(self, mock_node, mock_key_manager, sender, legacy_tx):
        mock_key_manager.unlock(sender, PASSPHRASE)
        mock_node.failures["send_raw_transaction"] = TransactionSubmitError("nonce too low", -32000)
        signer = TransactionSigner(mock_key_manager, mock_node)

        with pytest.raises(BroadcastFailed) as exc_info:
            signer.sign_and_send(build_legacy(legacy_tx), sender, 1337)

        assert exc_info.value.error_code == -32000
        assert exc_info.value.step == SubmissionStep.BROADCAST
        assert mock_node.calls.count("sign_transaction") == 1

    def test_transport_failure(self, mock_node, mock_key_manager, sender, legacy_tx):
        mock_key_manager.unlock(sender, PASSPHRASE)
        mock_node.failures["send_raw_transaction"] = NodeConnectionError("connection reset")
        signer = TransactionSigner(mock_key_manager, mock_node)

        with pytest.raises(BroadcastFailed, match="connection reset"):
            signer.sign_and_send(build_legacy(legacy_tx), sender, 1337)
