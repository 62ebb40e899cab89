"""Constant product and LP share math.

Pure functions over float reserves. The ledger in pool_ledger.pool wraps
these with validation, locking and state updates.

Share minting follows UniswapV2Pair.mint:
- first deposit: sqrt(amount_base * amount_other)
- later deposits: min of the two proportional contributions

Swap output is the zero-fee constant product solution:
    amount_out = reserve_out - k / (reserve_in + amount_in)
"""

from __future__ import annotations

import math

from pool_ledger.errors import InsufficientLiquidity, InvalidAmount


def require_positive(amount: float, name: str = "amount") -> float:
    """Validate that an amount is a finite number greater than zero.

    Raises:
        InvalidAmount: If amount is not a real number, not finite, or <= 0
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidAmount(f"{name} must be a number, got {type(amount).__name__}")
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidAmount(f"{name} must be finite and positive, got {amount!r}")
    return float(amount)


def initial_shares(amount_base: float, amount_other: float) -> float:
    """Shares minted by the deposit that seeds an empty pool.

    The geometric mean makes the share count independent of which token is
    taken as the unit of account.
    """
    return math.sqrt(amount_base * amount_other)


def proportional_shares(
    amount_base: float,
    amount_other: float,
    reserve_base: float,
    reserve_other: float,
    total_shares: float,
) -> float:
    """Shares minted by a deposit into a seeded pool.

    Takes the smaller of the two proportional contributions so a depositor
    never receives more than the less generous side justifies.
    """
    by_base = amount_base * total_shares / reserve_base
    by_other = amount_other * total_shares / reserve_other
    return min(by_base, by_other)


def redeem_amounts(
    shares: float,
    reserve_base: float,
    reserve_other: float,
    total_shares: float,
) -> tuple[float, float]:
    """Pro-rata slice of both reserves for burning `shares`.

    Returns:
        Tuple of (amount_base, amount_other)
    """
    if total_shares <= 0:
        raise InvalidAmount("Cannot redeem shares from a pool with no outstanding shares")
    amount_base = reserve_base * shares / total_shares
    amount_other = reserve_other * shares / total_shares
    return amount_base, amount_other


def get_amount_out(
    amount_in: float,
    reserve_in: float,
    reserve_out: float,
    k: float,
) -> float:
    """Output amount of a zero-fee constant product swap.

    Args:
        amount_in: Amount supplied to the pool
        reserve_in: Reserve of the supplied token before the swap
        reserve_out: Reserve of the received token before the swap
        k: Invariant held fixed across the swap

    Returns:
        Amount of the received token paid out

    Raises:
        InsufficientLiquidity: If the supplied reserve would be non-positive or
            the output would drain the receiving reserve
        InvalidAmount: If amount_in is too small to produce any output
    """
    new_reserve_in = reserve_in + amount_in
    if new_reserve_in <= 0:
        raise InsufficientLiquidity(
            f"Supplying reserve would be non-positive: {reserve_in!r} + {amount_in!r}"
        )
    amount_out = reserve_out - k / new_reserve_in
    if amount_out >= reserve_out:
        raise InsufficientLiquidity(
            f"Output {amount_out!r} would drain reserve {reserve_out!r}"
        )
    # Rounding can push the output of a dust-sized input below zero
    if amount_out <= 0:
        raise InvalidAmount(f"amount_in {amount_in!r} too small to produce any output")
    return amount_out


def spot_price(reserve_base: float, reserve_other: float) -> float | None:
    """Base reserve per unit of other reserve, or None when undefined."""
    if reserve_other <= 0:
        return None
    return reserve_base / reserve_other


def prices_match(implied: float, spot: float, rel_tol: float) -> bool:
    """Compare a deposit's implied price with the spot price."""
    return math.isclose(implied, spot, rel_tol=rel_tol, abs_tol=0.0)


def settle_redemption(
    reserve: float, amount: float, remaining_shares: float, total_shares: float
) -> tuple[float, float]:
    """Split a reserve between a redemption and the holders left behind.

    The reserve is only emptied by the last provider's exit, which is
    handled by the caller. While shares remain outstanding the reserve
    left behind must stay positive: when subtracting the redeemed slice
    rounds to zero or below, the remaining holders keep their pro-rata
    slice of the reserve and the redemption takes the rest.

    Args:
        reserve: Reserve before the withdrawal
        amount: Pro-rata amount redeemed from it
        remaining_shares: Shares still outstanding after the burn
        total_shares: Shares outstanding before the burn

    Returns:
        Tuple of (amount paid out, reserve left)
    """
    left = reserve - amount
    if left > 0:
        return amount, left
    left = max(reserve * remaining_shares / total_shares, 0.0)
    return reserve - left, left


__all__ = [
    "require_positive",
    "initial_shares",
    "proportional_shares",
    "redeem_amounts",
    "get_amount_out",
    "spot_price",
    "prices_match",
    "settle_redemption",
]
