"""
Transaction Signer - signs a built transaction and hands it to the node.
"""

import structlog

from txsubmit.core.errors import BroadcastFailed, SigningFailed
from txsubmit.core.options import Account, RawTransaction, SignedTransaction
from txsubmit.node.interface import NodeInterface, NodeConnectionError, TransactionSubmitError
from txsubmit.tx.keystore import KeyManager, KeyManagerError

logger = structlog.get_logger(__name__)


class TransactionSigner:
    """
    Signs with a key manager and broadcasts through a node.

    Each call signs exactly once and broadcasts at most once. Inclusion is
    not awaited.
    """

    def __init__(self, key_manager: KeyManager, node: NodeInterface):
        """
        Initialize the signer.

        Args:
            key_manager: Holder of the sender's unlocked key
            node: Node used for broadcast
        """
        self.key_manager = key_manager
        self.node = node

    def sign(self, raw_tx: RawTransaction, account: Account, chain_id: int) -> SignedTransaction:
        """
        Sign a transaction.

        Raises:
            SigningFailed: If the key manager cannot produce a signature
        """
        try:
            return self.key_manager.sign_transaction(account, raw_tx, chain_id)
        except KeyManagerError as e:
            logger.error("signing_failed", address=account.address, error=str(e))
            raise SigningFailed(f"can not sign transaction for {account.address}: {e}", e) from e

    def send(self, signed_tx: SignedTransaction) -> str:
        """
        Broadcast a signed transaction.

        Raises:
            BroadcastFailed: If the node rejects the transaction or is unreachable
        """
        try:
            tx_hash = self.node.send_raw_transaction(signed_tx.raw_transaction)
        except TransactionSubmitError as e:
            logger.error("broadcast_rejected", tx_hash=signed_tx.tx_hash, error=str(e))
            raise BroadcastFailed(f"node rejected transaction: {e}", e, e.error_code) from e
        except NodeConnectionError as e:
            logger.error("broadcast_failed", tx_hash=signed_tx.tx_hash, error=str(e))
            raise BroadcastFailed(f"broadcast failed: {e}", e) from e

        return tx_hash or signed_tx.tx_hash

    def sign_and_send(self, raw_tx: RawTransaction, account: Account, chain_id: int) -> str:
        """
        Sign a transaction and broadcast it.

        Args:
            raw_tx: Unsigned transaction
            account: Sending account (must be unlocked)
            chain_id: Chain the signature is bound to

        Returns:
            Transaction hash
        """
        signed_tx = self.sign(raw_tx, account, chain_id)
        tx_hash = self.send(signed_tx)

        logger.info(
            "transaction_broadcast",
            address=account.address,
            shape=raw_tx.shape.value,
            nonce=raw_tx.nonce,
            tx_hash=tx_hash,
        )
        return tx_hash
