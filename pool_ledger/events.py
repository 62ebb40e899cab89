"""Event payloads emitted by pool ledger operations.

Each mutating Pool operation builds one of these after its state change has
committed and hands it to every subscribed listener. Rendering is left to
the listener; the payload fields are the contract.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any

from pool_ledger.tokens import Token


@dataclass(frozen=True)
class DepositEvent:
    """Liquidity added by a provider."""

    provider: str
    amount_base: float
    amount_other: float
    minted_shares: float
    # Provider's running share balance after the deposit
    provider_shares: float
    total_shares: float
    reserve_base: float
    reserve_other: float
    price: float

    @property
    def name(self) -> str:
        return "liquidity_added"


@dataclass(frozen=True)
class WithdrawalEvent:
    """Liquidity redeemed by a provider."""

    provider: str
    shares_burned: float
    amount_base: float
    amount_other: float
    # 0.0 when the provider has exited completely
    provider_shares: float
    total_shares: float
    reserve_base: float
    reserve_other: float
    # None once the other reserve is empty
    price: float | None

    @property
    def name(self) -> str:
        return "liquidity_removed"


@dataclass(frozen=True)
class SwapEvent:
    """Tokens swapped against the pool."""

    amount_in: float
    amount_out: float
    token_in: Token
    token_out: Token
    reserve_base: float
    reserve_other: float
    price: float

    @property
    def name(self) -> str:
        return "tokens_swapped"


PoolEvent = DepositEvent | WithdrawalEvent | SwapEvent

# Listener signature accepted by Pool.subscribe()
EventListener = Callable[[PoolEvent], Any]


def event_fields(event: PoolEvent) -> dict[str, Any]:
    """Flatten an event into keyword context for structured logging."""
    fields = asdict(event)
    for key, value in fields.items():
        if isinstance(value, Token):
            fields[key] = value.value
    return fields


__all__ = [
    "DepositEvent",
    "WithdrawalEvent",
    "SwapEvent",
    "PoolEvent",
    "EventListener",
    "event_fields",
]
