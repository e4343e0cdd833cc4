"""
Transaction module.

Handles balance checks, parameter resolution, construction, signing and broadcast.
"""

from txsubmit.tx.balance import check_sufficient_balance
from txsubmit.tx.builder import build_dynamic_fee, build_legacy
from txsubmit.tx.keystore import FileKeyStore, KeyManager, KeyManagerError
from txsubmit.tx.resolver import (
    ParameterResolver,
    with_chain_id,
    with_data,
    with_gas_fee_cap,
    with_gas_limit,
    with_gas_price,
    with_gas_tip_cap,
    with_nonce,
    with_random_data,
)
from txsubmit.tx.signer import TransactionSigner

__all__ = [
    "check_sufficient_balance",
    "build_dynamic_fee",
    "build_legacy",
    "FileKeyStore",
    "KeyManager",
    "KeyManagerError",
    "ParameterResolver",
    "with_chain_id",
    "with_data",
    "with_gas_fee_cap",
    "with_gas_limit",
    "with_gas_price",
    "with_gas_tip_cap",
    "with_nonce",
    "with_random_data",
    "TransactionSigner",
]
