"""
Node Integration Layer.

Provides abstracted access to chain state and transaction broadcast.
"""

from txsubmit.node.interface import (
    BlockHeader,
    NodeConnectionError,
    NodeInterface,
    TransactionSubmitError,
)
from txsubmit.node.jsonrpc import JsonRpcAdapter

__all__ = [
    "BlockHeader",
    "NodeConnectionError",
    "NodeInterface",
    "TransactionSubmitError",
    "JsonRpcAdapter",
]
