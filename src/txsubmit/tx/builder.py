"""
Transaction Factory - turns resolved parameters into unsigned transactions.

Pure construction: every field is already concrete, so nothing here can fail.
"""

from txsubmit.core.options import (
    RawTransaction,
    ResolvedDynamicFeeTransaction,
    ResolvedLegacyTransaction,
    ResolvedTransaction,
    TransactionShape,
)

DYNAMIC_FEE_TX_TYPE = 2


def build_legacy(resolved: ResolvedLegacyTransaction) -> RawTransaction:
    """
    Build a legacy transaction.

    The chain ID is added by the key manager at signing time (EIP-155).
    """
    return RawTransaction(
        shape=TransactionShape.LEGACY,
        fields={
            "nonce": resolved.nonce,
            "to": resolved.to,
            "value": resolved.value,
            "gas": resolved.gas_limit,
            "gasPrice": resolved.gas_price,
            "data": _hex(resolved.data),
        },
    )


def build_dynamic_fee(resolved: ResolvedDynamicFeeTransaction) -> RawTransaction:
    """Build an EIP-1559 dynamic-fee transaction with an empty access list."""
    return RawTransaction(
        shape=TransactionShape.DYNAMIC_FEE,
        fields={
            "type": DYNAMIC_FEE_TX_TYPE,
            "chainId": resolved.chain_id,
            "nonce": resolved.nonce,
            "to": resolved.to,
            "value": resolved.value,
            "gas": resolved.gas_limit,
            "maxFeePerGas": resolved.gas_fee_cap,
            "maxPriorityFeePerGas": resolved.gas_tip_cap,
            "data": _hex(resolved.data),
            "accessList": [],
        },
    )


def build_transaction(resolved: ResolvedTransaction) -> RawTransaction:
    """Dispatch on the shape of the resolved parameters."""
    if resolved.shape == TransactionShape.LEGACY:
        return build_legacy(resolved)
    return build_dynamic_fee(resolved)


def _hex(data: bytes) -> str:
    return "0x" + data.hex()
