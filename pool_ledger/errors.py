"""Pool ledger error classes.

Every rejected operation raises a subclass of LedgerError before any state
is mutated, so callers can catch, correct and retry.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base error for pool ledger operations."""

    pass


class InvalidAmount(LedgerError, ValueError):
    """Amount is zero, negative, non-finite, or exceeds the available balance."""

    pass


class InvalidProvider(LedgerError, ValueError):
    """Provider identity must be a non-empty string."""

    pass


class UnknownToken(LedgerError, ValueError):
    """Token is neither side of the pool."""

    pass


class InvariantViolation(LedgerError):
    """Deposit ratio does not match the pool's current spot price."""

    def __init__(self, implied_price: float, spot_price: float) -> None:
        self.implied_price = implied_price
        self.spot_price = spot_price
        super().__init__(
            f"Deposit ratio {implied_price!r} does not match pool price {spot_price!r}"
        )


class ProviderNotFound(LedgerError, KeyError):
    """Provider holds no shares in the pool."""

    def __init__(self, provider: str) -> None:
        self.provider = provider
        super().__init__(provider)

    def __str__(self) -> str:
        return f"Provider {self.provider!r} not found in pool"


class InsufficientLiquidity(LedgerError):
    """Swap would drain the receiving reserve or empty the supplying one."""

    pass


class UndefinedPrice(LedgerError):
    """Spot price is undefined while the other reserve is empty."""

    pass
