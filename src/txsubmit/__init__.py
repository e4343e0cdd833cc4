"""
txsubmit

Builds, signs and broadcasts value transfers on account-based chains that
speak the eth_* JSON-RPC API. Unset parameters (nonce, gas, fee caps, chain ID,
payload) are filled from the node; callers adjust any of them through
override functions.
"""

__version__ = "0.1.0"

from txsubmit.core.options import ETHER, GWEI, WEI, Account
from txsubmit.core.submitter import (
    Submitter,
    send_dynamic_fee_transaction,
    send_legacy_transaction,
)
from txsubmit.core.errors import SubmissionError
from txsubmit.node.jsonrpc import JsonRpcAdapter
from txsubmit.tx.keystore import FileKeyStore

__all__ = [
    "ETHER",
    "GWEI",
    "WEI",
    "Account",
    "Submitter",
    "send_dynamic_fee_transaction",
    "send_legacy_transaction",
    "SubmissionError",
    "JsonRpcAdapter",
    "FileKeyStore",
]
