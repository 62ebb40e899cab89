"""Constant product liquidity pool ledger.

Pool holds two reserves (base and other), the invariant k, the spot price
(base per other), the LP share supply and each provider's share balance.
All state changes go through deposit(), withdraw() and swap(); each one
validates and computes into locals before committing, so a rejected
operation leaves the pool untouched.

Usage:
    pool = Pool()
    pool.deposit(5_000, 10_000, "alice")   # seeds the pool, price 0.5
    pool.swap(50, Token.BASE)              # sell 50 other for base
    pool.withdraw("alice")                 # full exit
"""

from __future__ import annotations

import math
import threading
from collections.abc import Mapping
from types import MappingProxyType

import structlog

from pool_ledger.config import DEFAULT_LEDGER_CONFIG, LedgerConfig
from pool_ledger.errors import (
    InsufficientLiquidity,
    InvalidAmount,
    InvalidProvider,
    InvariantViolation,
    ProviderNotFound,
    UndefinedPrice,
)
from pool_ledger.events import (
    DepositEvent,
    EventListener,
    PoolEvent,
    SwapEvent,
    WithdrawalEvent,
    event_fields,
)
from pool_ledger.formulas import (
    get_amount_out,
    initial_shares,
    prices_match,
    proportional_shares,
    redeem_amounts,
    require_positive,
    settle_redemption,
    spot_price,
)
from pool_ledger.snapshot import PoolSnapshot
from pool_ledger.tokens import Token, parse_token

logger = structlog.get_logger()


def _require_provider(provider: str) -> str:
    if not isinstance(provider, str) or not provider:
        raise InvalidProvider(f"Provider must be a non-empty string, got {provider!r}")
    return provider


class Pool:
    """In-memory ledger for a single two-token constant product pool.

    The pool exclusively owns the share balances; callers refer to
    providers by identity and only ever see copies of the balances.
    One reentrant lock per pool makes each operation atomic with respect
    to the others. Listeners run after the lock is released.
    """

    def __init__(self, config: LedgerConfig | None = None) -> None:
        """Create an empty pool.

        Args:
            config: Tolerance settings (default: DEFAULT_LEDGER_CONFIG)
        """
        self.config = config or DEFAULT_LEDGER_CONFIG
        self._reserve_base = 0.0
        self._reserve_other = 0.0
        self._k = 0.0
        # None while reserve_other is empty
        self._price: float | None = None
        self._total_shares = 0.0
        self._shares: dict[str, float] = {}
        self._listeners: list[EventListener] = []
        self._lock = threading.RLock()

    def __repr__(self) -> str:
        return (
            f"Pool(reserve_base={self._reserve_base}, reserve_other={self._reserve_other}, "
            f"k={self._k}, total_shares={self._total_shares}, providers={len(self._shares)})"
        )

    # --- Read-only state ---

    @property
    def reserve_base(self) -> float:
        return self._reserve_base

    @property
    def reserve_other(self) -> float:
        return self._reserve_other

    @property
    def invariant_k(self) -> float:
        """Product of the reserves as of the last deposit or withdrawal."""
        return self._k

    @property
    def total_shares(self) -> float:
        return self._total_shares

    @property
    def is_seeded(self) -> bool:
        """True once LP shares are outstanding."""
        return self._total_shares > 0

    @property
    def providers(self) -> Mapping[str, float]:
        """Read-only copy of every provider's share balance."""
        with self._lock:
            return MappingProxyType(dict(self._shares))

    # --- Queries ---

    def get_reserves(self) -> tuple[float, float]:
        """Get reserves as (reserve_base, reserve_other)."""
        with self._lock:
            return self._reserve_base, self._reserve_other

    def get_price(self) -> float:
        """Get the spot price (base per unit of other).

        Raises:
            UndefinedPrice: If the other reserve is empty
        """
        price = self._price
        if price is None:
            raise UndefinedPrice("Spot price is undefined while reserve_other is zero")
        return price

    def get_provider_shares(self, provider: str) -> float:
        """Get a provider's outstanding share balance.

        Raises:
            ProviderNotFound: If the provider holds no shares
        """
        try:
            return self._shares[provider]
        except KeyError:
            raise ProviderNotFound(provider) from None

    def quote_swap(self, amount_in: float, target_token: Token | str) -> float:
        """Calculate the output of a swap without executing it.

        Args:
            amount_in: Amount of the supplied token
            target_token: Token the caller wants to receive

        Returns:
            Amount of target_token the swap would pay out
        """
        amount_in = require_positive(amount_in, "amount_in")
        token_out = parse_token(target_token)
        with self._lock:
            return self._amount_out(amount_in, token_out)

    # --- Events ---

    def subscribe(self, listener: EventListener) -> None:
        """Register a callable to receive every event this pool emits."""
        with self._lock:
            self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        """Remove a previously registered listener.

        Raises:
            ValueError: If the listener is not registered
        """
        with self._lock:
            self._listeners.remove(listener)

    def _emit(self, event: PoolEvent) -> None:
        logger.info(event.name, **event_fields(event))
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(event)

    # --- Mutations ---

    def deposit(self, amount_base: float, amount_other: float, provider: str) -> float:
        """Add liquidity to the pool and mint LP shares.

        The first deposit sets the price and mints sqrt(base * other)
        shares. Later deposits must match the spot price within
        config.price_tolerance and mint shares in proportion to the
        smaller relative contribution.

        Args:
            amount_base: Amount of base token deposited
            amount_other: Amount of other token deposited
            provider: Identity credited with the minted shares

        Returns:
            Number of shares minted

        Raises:
            InvalidAmount: If an amount is not finite and positive
            InvalidProvider: If provider is empty
            InvariantViolation: If the deposit ratio differs from the spot price
        """
        amount_base = require_positive(amount_base, "amount_base")
        amount_other = require_positive(amount_other, "amount_other")
        _require_provider(provider)

        with self._lock:
            if self.is_seeded:
                implied_price = amount_base / amount_other
                current_price = self.get_price()
                if not prices_match(implied_price, current_price, self.config.price_tolerance):
                    logger.warning(
                        "deposit_rejected_price_mismatch",
                        provider=provider,
                        implied_price=implied_price,
                        spot_price=current_price,
                    )
                    raise InvariantViolation(implied_price, current_price)
                minted = proportional_shares(
                    amount_base,
                    amount_other,
                    self._reserve_base,
                    self._reserve_other,
                    self._total_shares,
                )
            else:
                minted = initial_shares(amount_base, amount_other)

            if not math.isfinite(minted) or minted <= 0:
                raise InvalidAmount(
                    f"Deposit of ({amount_base!r}, {amount_other!r}) mints no usable shares"
                )

            new_base = self._reserve_base + amount_base
            new_other = self._reserve_other + amount_other
            new_total = self._total_shares + minted
            if (
                new_base == self._reserve_base
                or new_other == self._reserve_other
                or new_total == self._total_shares
            ):
                logger.warning(
                    "deposit_rejected_absorbed",
                    provider=provider,
                    amount_base=amount_base,
                    amount_other=amount_other,
                )
                raise InvalidAmount(
                    f"Deposit of ({amount_base!r}, {amount_other!r}) is too small "
                    "to change the pool's reserves"
                )
            provider_shares = self._shares.get(provider, 0.0) + minted

            self._set_reserves(new_base, new_other)
            self._total_shares = new_total
            self._shares[provider] = provider_shares

            event = DepositEvent(
                provider=provider,
                amount_base=amount_base,
                amount_other=amount_other,
                minted_shares=minted,
                provider_shares=provider_shares,
                total_shares=self._total_shares,
                reserve_base=new_base,
                reserve_other=new_other,
                price=self.get_price(),
            )

        self._emit(event)
        return minted

    def withdraw(self, provider: str, shares: float | None = None) -> tuple[float, float]:
        """Burn a provider's shares for a pro-rata slice of both reserves.

        Redemption is against current reserves, so the provider carries
        any price movement since their deposit.

        Args:
            provider: Identity holding the shares
            shares: Amount to burn (default: the provider's entire balance)

        Returns:
            Tuple of (amount_base, amount_other) paid out

        Raises:
            ProviderNotFound: If the provider holds no shares
            InvalidAmount: If shares is not positive or exceeds the balance
        """
        tolerance = self.config.dust_tolerance

        with self._lock:
            balance = self._shares.get(provider)
            if balance is None:
                logger.warning("withdraw_rejected_unknown_provider", provider=provider)
                raise ProviderNotFound(provider)

            if shares is None:
                burn = balance
            else:
                burn = require_positive(shares, "shares")
                if math.isclose(burn, balance, rel_tol=tolerance):
                    burn = balance
                elif burn > balance:
                    raise InvalidAmount(
                        f"Cannot burn {burn!r} shares, provider {provider!r} holds {balance!r}"
                    )

            provider_exits = burn == balance
            if provider_exits and len(self._shares) == 1:
                # Last provider out takes whatever is left
                amount_base, amount_other = self._reserve_base, self._reserve_other
                new_base = new_other = new_total = 0.0
            else:
                # Recounted rather than subtracted: a large burn can cancel
                # small balances out of total_shares - burn
                new_total = math.fsum(
                    held for holder, held in self._shares.items() if holder != provider
                ) + (balance - burn)
                amount_base, amount_other = redeem_amounts(
                    burn, self._reserve_base, self._reserve_other, self._total_shares
                )
                amount_base, new_base = settle_redemption(
                    self._reserve_base, amount_base, new_total, self._total_shares
                )
                amount_other, new_other = settle_redemption(
                    self._reserve_other, amount_other, new_total, self._total_shares
                )

            self._set_reserves(new_base, new_other)
            self._total_shares = new_total
            if provider_exits:
                del self._shares[provider]
                provider_shares = 0.0
            else:
                provider_shares = balance - burn
                self._shares[provider] = provider_shares

            logger.debug(
                "shares_burned",
                provider=provider,
                shares=burn,
                full_exit=provider_exits,
                pool_emptied=new_total == 0,
            )

            event = WithdrawalEvent(
                provider=provider,
                shares_burned=burn,
                amount_base=amount_base,
                amount_other=amount_other,
                provider_shares=provider_shares,
                total_shares=new_total,
                reserve_base=new_base,
                reserve_other=new_other,
                price=self._price,
            )

        self._emit(event)
        return amount_base, amount_other

    def swap(self, amount_in: float, target_token: Token | str) -> float:
        """Swap against the pool with no fee.

        The caller supplies amount_in of the token opposite target_token
        and receives reserve_out - k / (reserve_in + amount_in). k is held
        fixed; only the spot price is recomputed.

        Args:
            amount_in: Amount of the supplied token
            target_token: Token the caller wants to receive

        Returns:
            Amount of target_token paid out

        Raises:
            InvalidAmount: If amount_in is not finite and positive
            UnknownToken: If target_token names neither reserve
            InsufficientLiquidity: If the swap would drain the receiving reserve
        """
        amount_in = require_positive(amount_in, "amount_in")
        token_out = parse_token(target_token)
        token_in = token_out.counterpart

        with self._lock:
            amount_out = self._amount_out(amount_in, token_out)

            if token_out is Token.BASE:
                new_base = self._reserve_base - amount_out
                new_other = self._reserve_other + amount_in
            else:
                new_base = self._reserve_base + amount_in
                new_other = self._reserve_other - amount_out

            self._reserve_base = new_base
            self._reserve_other = new_other
            self._price = spot_price(new_base, new_other)

            event = SwapEvent(
                amount_in=amount_in,
                amount_out=amount_out,
                token_in=token_in,
                token_out=token_out,
                reserve_base=new_base,
                reserve_other=new_other,
                price=self.get_price(),
            )

        self._emit(event)
        return amount_out

    # --- Persistence ---

    def snapshot(self) -> PoolSnapshot:
        """Capture reserves, share supply and balances."""
        with self._lock:
            return PoolSnapshot(
                reserve_base=self._reserve_base,
                reserve_other=self._reserve_other,
                total_shares=self._total_shares,
                shares_by_provider=dict(self._shares),
            )

    @classmethod
    def from_snapshot(cls, snapshot: PoolSnapshot, config: LedgerConfig | None = None) -> Pool:
        """Rebuild a pool from a snapshot, deriving k and the spot price."""
        pool = cls(config=config)
        pool._set_reserves(snapshot.reserve_base, snapshot.reserve_other)
        pool._total_shares = snapshot.total_shares
        pool._shares = dict(snapshot.shares_by_provider)
        return pool

    # --- Internals ---

    def _set_reserves(self, reserve_base: float, reserve_other: float) -> None:
        """Commit new reserves and recompute k and the spot price."""
        self._reserve_base = reserve_base
        self._reserve_other = reserve_other
        self._k = reserve_base * reserve_other
        self._price = spot_price(reserve_base, reserve_other)

    def _amount_out(self, amount_in: float, token_out: Token) -> float:
        if token_out is Token.BASE:
            reserve_in, reserve_out = self._reserve_other, self._reserve_base
        else:
            reserve_in, reserve_out = self._reserve_base, self._reserve_other
        try:
            return get_amount_out(amount_in, reserve_in, reserve_out, self._k)
        except InsufficientLiquidity:
            logger.warning(
                "swap_rejected_insufficient_liquidity",
                amount_in=amount_in,
                token_out=token_out.value,
                reserve_in=reserve_in,
                reserve_out=reserve_out,
            )
            raise
