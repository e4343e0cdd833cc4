"""
Submission orchestrator.

Sequences one transfer: unlock -> balance gate -> chain id -> resolve ->
build -> sign -> broadcast. The first failing step ends the attempt; no step
is retried and nothing after it runs.
"""

from dataclasses import replace
from typing import Optional, Sequence

import structlog
from eth_utils import to_checksum_address

from txsubmit.core.errors import AuthError, QueryFailed, SubmissionError, SubmissionStep
from txsubmit.core.options import (
    AccountLike,
    Override,
    Submission,
    TransactionShape,
    as_account,
)
from txsubmit.node.interface import NodeInterface, NodeConnectionError
from txsubmit.tx.balance import check_sufficient_balance
from txsubmit.tx.builder import build_transaction
from txsubmit.tx.keystore import KeyManager, KeyManagerError
from txsubmit.tx.resolver import ParameterResolver
from txsubmit.tx.signer import TransactionSigner

logger = structlog.get_logger(__name__)


class Submitter:
    """
    Builds, signs and broadcasts value transfers.

    The node and key manager are owned by the caller. A Submitter holds no
    per-call state, so one instance can serve concurrent callers as long as
    the node adapter can.

    Usage:
        ```python
        with JsonRpcAdapter(config) as node:
            submitter = Submitter(node, FileKeyStore("./keystore"))
            submission = submitter.send_dynamic_fee_transaction(
                "secret", sender, recipient, 10 * GWEI, with_gas_limit(30_000)
            )
        ```
    """

    def __init__(
        self,
        node: NodeInterface,
        key_manager: KeyManager,
        resolver: Optional[ParameterResolver] = None,
    ):
        """
        Initialize the submitter.

        Args:
            node: Node used for queries and broadcast
            key_manager: Key manager holding the sender's key
            resolver: Custom parameter resolver (default resolver if not provided)
        """
        self.node = node
        self.key_manager = key_manager
        self.resolver = resolver or ParameterResolver(node)
        self.signer = TransactionSigner(key_manager, node)

    def send_legacy_transaction(
        self,
        passphrase: str,
        sender: AccountLike,
        to: str,
        amount: int,
        *overrides: Override,
    ) -> Submission:
        """Submit a fixed gas price transaction."""
        return self.submit(TransactionShape.LEGACY, passphrase, sender, to, amount, overrides)

    def send_dynamic_fee_transaction(
        self,
        passphrase: str,
        sender: AccountLike,
        to: str,
        amount: int,
        *overrides: Override,
    ) -> Submission:
        """Submit an EIP-1559 dynamic-fee transaction."""
        return self.submit(TransactionShape.DYNAMIC_FEE, passphrase, sender, to, amount, overrides)

    def submit(
        self,
        shape: TransactionShape,
        passphrase: str,
        sender: AccountLike,
        to: str,
        amount: int,
        overrides: Sequence[Override] = (),
    ) -> Submission:
        """
        Run the full pipeline for one transaction.

        Args:
            shape: Legacy or dynamic-fee
            passphrase: Passphrase unlocking the sender's key
            sender: Sending account or address
            to: Recipient address
            amount: Value in wei
            overrides: Callables applied to the options before defaulting

        Returns:
            The submission record, in SUBMITTED state

        Raises:
            ValueError: If an address or the amount is malformed
            SubmissionError: If any step fails; the error's `submission`
                attribute holds the REJECTED record
        """
        if amount < 0:
            raise ValueError("Amount must be non-negative")

        sender = as_account(sender)
        sender = replace(sender, address=to_checksum_address(sender.address))
        to = to_checksum_address(to)

        submission = Submission(shape=TransactionShape(shape), sender=sender, to=to, amount=amount)
        log = logger.bind(shape=submission.shape.value, sender=sender.address, to=to)

        try:
            self._unlock(submission, passphrase)
            submission.mark_unlocked()

            check_sufficient_balance(self.node, sender, amount)
            submission.mark_funded()

            submission.chain_id = self._chain_id()

            if submission.shape == TransactionShape.LEGACY:
                resolved = self.resolver.resolve_legacy(sender, to, amount, overrides)
                signing_chain_id = submission.chain_id
            else:
                resolved = self.resolver.resolve_dynamic_fee(
                    sender, to, amount, submission.chain_id, overrides
                )
                signing_chain_id = resolved.chain_id
            submission.mark_resolved(resolved)

            raw_tx = build_transaction(resolved)
            tx_hash = self.signer.sign_and_send(raw_tx, sender, signing_chain_id)
            submission.mark_submitted(tx_hash)

        except SubmissionError as e:
            submission.mark_rejected(str(e))
            e.submission = submission
            log.warning("submission_rejected", step=e.step.value, error=str(e))
            raise

        log.info(
            "submission_accepted",
            tx_hash=submission.tx_hash,
            nonce=submission.resolved.nonce,
            amount=amount,
        )
        return submission

    def _unlock(self, submission: Submission, passphrase: str) -> None:
        account = submission.sender
        try:
            self.key_manager.unlock(account, passphrase)
        except KeyManagerError as e:
            raise AuthError(f"can not unlock account: {account.address}: {e}", e) from e

    def _chain_id(self) -> int:
        try:
            return self.node.chain_id()
        except NodeConnectionError as e:
            raise QueryFailed(f"chain id query failed: {e}", e, SubmissionStep.CHAIN_ID) from e


def send_legacy_transaction(
    node: NodeInterface,
    key_manager: KeyManager,
    passphrase: str,
    sender: AccountLike,
    to: str,
    amount: int,
    *overrides: Override,
) -> Submission:
    """Submit a legacy transaction without keeping a Submitter around."""
    return Submitter(node, key_manager).send_legacy_transaction(
        passphrase, sender, to, amount, *overrides
    )


def send_dynamic_fee_transaction(
    node: NodeInterface,
    key_manager: KeyManager,
    passphrase: str,
    sender: AccountLike,
    to: str,
    amount: int,
    *overrides: Override,
) -> Submission:
    """Submit a dynamic-fee transaction without keeping a Submitter around."""
    return Submitter(node, key_manager).send_dynamic_fee_transaction(
        passphrase, sender, to, amount, *overrides
    )
