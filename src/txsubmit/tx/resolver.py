"""
Parameter Resolver - applies caller overrides, then fills the gaps.

Overrides are plain callables that receive the mutable options object and
change any subset of its fields. They run in the order given, so a later
override wins over an earlier one for the same field. Only fields that are
still None afterwards are defaulted.
"""

import secrets
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

import structlog

from txsubmit.core.errors import DefaultResolutionFailed
from txsubmit.core.options import (
    DEFAULT_GAS_LIMIT,
    Account,
    DynamicFeeOptions,
    Override,
    ResolvedDynamicFeeTransaction,
    ResolvedLegacyTransaction,
    TransactionOptions,
)
from txsubmit.node.interface import NodeInterface, NodeConnectionError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def apply_overrides(options: T, overrides: Sequence[Override]) -> T:
    """
    Run each override against the options, in order.

    Args:
        options: Mutable options object
        overrides: Override callables

    Returns:
        The same options object, for chaining
    """
    for override in overrides:
        override(options)
    return options


class ParameterResolver:
    """
    Turns a sender, recipient, amount and overrides into concrete parameters.

    Defaults come from the node:
    - nonce: pending nonce of the sender
    - legacy gas price: node gas price suggestion
    - dynamic-fee fee cap and tip cap: node tip cap suggestion
    - gas limit: 21000 for both shapes
    - data: empty
    """

    def __init__(self, node: NodeInterface, default_gas_limit: int = DEFAULT_GAS_LIMIT):
        self.node = node
        self.default_gas_limit = default_gas_limit

    def _fetch(self, field: str, fetch: Callable[[], int]) -> int:
        try:
            return fetch()
        except NodeConnectionError as e:
            logger.error("default_resolution_failed", field=field, error=str(e))
            raise DefaultResolutionFailed(field, e) from e

    def _nonce(self, sender: Account, nonce: Optional[int]) -> int:
        if nonce is not None:
            return nonce
        return self._fetch("nonce", lambda: self.node.pending_nonce_at(sender.address))

    def _fee_caps(self, fee_cap: Optional[int], tip_cap: Optional[int]) -> Tuple[int, int]:
        """
        Fill unset fee caps from one tip suggestion.

        A defaulted cap is clamped against an explicit one so that the tip
        never exceeds the fee cap.
        """
        if fee_cap is not None and tip_cap is not None:
            return fee_cap, tip_cap

        field = "gas_fee_cap" if fee_cap is None else "gas_tip_cap"
        suggested = self._fetch(field, self.node.suggest_gas_tip_cap)

        if fee_cap is None and tip_cap is None:
            return suggested, suggested
        if fee_cap is None:
            return max(suggested, tip_cap), tip_cap
        return fee_cap, min(suggested, fee_cap)

    def resolve_legacy(
        self,
        sender: Account,
        to: str,
        amount: int,
        overrides: Sequence[Override] = (),
    ) -> ResolvedLegacyTransaction:
        """
        Resolve a legacy (fixed gas price) transaction.

        Args:
            sender: Sending account, used for the nonce lookup
            to: Recipient address
            amount: Value in wei
            overrides: Callables mutating a TransactionOptions

        Returns:
            Fully populated transaction parameters

        Raises:
            DefaultResolutionFailed: If a default cannot be fetched
        """
        options = apply_overrides(TransactionOptions(), overrides)
        defaulted = _unset_fields(options)

        nonce = self._nonce(sender, options.nonce)
        gas_price = options.gas_price
        if gas_price is None:
            gas_price = self._fetch("gas_price", self.node.suggest_gas_price)

        resolved = ResolvedLegacyTransaction(
            nonce=nonce,
            to=to,
            value=amount,
            gas_limit=self.default_gas_limit if options.gas_limit is None else options.gas_limit,
            gas_price=gas_price,
            data=b"" if options.data is None else bytes(options.data),
        )

        logger.debug(
            "parameters_resolved",
            shape=resolved.shape.value,
            nonce=resolved.nonce,
            gas_price=resolved.gas_price,
            gas_limit=resolved.gas_limit,
            defaulted=defaulted,
        )
        return resolved

    def resolve_dynamic_fee(
        self,
        sender: Account,
        to: str,
        amount: int,
        chain_id: int,
        overrides: Sequence[Override] = (),
    ) -> ResolvedDynamicFeeTransaction:
        """
        Resolve a dynamic-fee transaction.

        The options start out with chain_id, to and value taken from the call;
        overrides may replace them. If an override clears one of them again
        the call's value is used.
        """
        options = apply_overrides(
            DynamicFeeOptions(chain_id=chain_id, to=to, value=amount),
            overrides,
        )
        defaulted = _unset_fields(options)

        nonce = self._nonce(sender, options.nonce)

        gas_fee_cap, gas_tip_cap = self._fee_caps(options.gas_fee_cap, options.gas_tip_cap)

        resolved = ResolvedDynamicFeeTransaction(
            chain_id=chain_id if options.chain_id is None else options.chain_id,
            nonce=nonce,
            to=to if options.to is None else options.to,
            value=amount if options.value is None else options.value,
            gas_limit=self.default_gas_limit if options.gas_limit is None else options.gas_limit,
            gas_tip_cap=gas_tip_cap,
            gas_fee_cap=gas_fee_cap,
            data=b"" if options.data is None else bytes(options.data),
        )

        logger.debug(
            "parameters_resolved",
            shape=resolved.shape.value,
            nonce=resolved.nonce,
            gas_fee_cap=resolved.gas_fee_cap,
            gas_tip_cap=resolved.gas_tip_cap,
            gas_limit=resolved.gas_limit,
            defaulted=defaulted,
        )
        return resolved


def _unset_fields(options) -> List[str]:
    return [name for name, value in vars(options).items() if value is None]


# ============================================================================
# Override helpers
# ============================================================================

def _setter(field: str, value) -> Override:
    def override(options) -> None:
        if not hasattr(options, field):
            raise TypeError(f"{type(options).__name__} has no field {field!r}")
        setattr(options, field, value)

    override.__name__ = f"with_{field}"
    return override


def with_nonce(nonce: int) -> Override:
    """Use an explicit nonce; 0 is honored."""
    return _setter("nonce", nonce)


def with_gas_limit(gas_limit: int) -> Override:
    return _setter("gas_limit", gas_limit)


def with_gas_price(gas_price: int) -> Override:
    """Legacy transactions only."""
    return _setter("gas_price", gas_price)


def with_gas_fee_cap(fee_cap: int) -> Override:
    """Dynamic-fee transactions only."""
    return _setter("gas_fee_cap", fee_cap)


def with_gas_tip_cap(tip_cap: int) -> Override:
    """Dynamic-fee transactions only."""
    return _setter("gas_tip_cap", tip_cap)


def with_chain_id(chain_id: int) -> Override:
    """Dynamic-fee transactions only."""
    return _setter("chain_id", chain_id)


def with_data(data: bytes) -> Override:
    return _setter("data", bytes(data))


def with_random_data(length: int) -> Override:
    """
    Attach `length` random bytes as payload.

    Randomness is drawn when the override runs, so each submission gets a
    fresh payload.
    """
    if length < 0:
        raise ValueError("Random payload length must be non-negative")

    def override(options) -> None:
        options.data = secrets.token_bytes(length)

    override.__name__ = "with_random_data"
    return override
