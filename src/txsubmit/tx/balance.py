"""
Pre-flight balance check.
"""

import structlog

from txsubmit.core.errors import InsufficientFunds, QueryFailed, SubmissionStep
from txsubmit.core.options import Account
from txsubmit.node.interface import NodeInterface, NodeConnectionError

logger = structlog.get_logger(__name__)


def check_sufficient_balance(node: NodeInterface, account: Account, amount: int) -> int:
    """
    Reject a transfer the sender cannot cover.

    The balance must be strictly greater than the amount: gas is paid on top
    of the value and is not known yet, so an exact match is rejected too.

    Args:
        node: Node to query
        account: Sending account
        amount: Value to transfer, in wei

    Returns:
        The balance that was checked

    Raises:
        QueryFailed: If the balance cannot be read
        InsufficientFunds: If balance <= amount
    """
    try:
        balance = node.balance_at(account.address, "latest")
    except NodeConnectionError as e:
        raise QueryFailed(f"balance query failed for {account.address}: {e}", e, SubmissionStep.BALANCE) from e

    if balance <= amount:
        logger.warning(
            "balance_insufficient",
            address=account.address,
            balance=balance,
            amount=amount,
        )
        raise InsufficientFunds(balance, amount)

    logger.debug("balance_checked", address=account.address, balance=balance, amount=amount)
    return balance
