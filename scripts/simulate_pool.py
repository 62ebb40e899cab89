#!/usr/bin/env python3
"""Replay a liquidity provision scenario against a fresh pool.

Alice seeds the pool, a trader buys base token, Bob adds liquidity at the
moved price, then Alice exits. Every ledger event is logged; the final
reserves and price are printed.

Usage:
    python scripts/simulate_pool.py [--verbose]
    python scripts/simulate_pool.py --base 500000 --other 5000000 --swap 1000

Exit codes:
    0 - Scenario completed
    1 - A ledger operation was rejected
"""

import argparse
import sys

import structlog

from pool_ledger import LedgerConfig, LedgerError, Pool, PoolEvent, Token, UndefinedPrice
from pool_ledger.log import configure_logging

logger = structlog.get_logger()


def run_scenario(pool: Pool, base: float, other: float, swap_amount: float) -> None:
    """Drive the pool through the reference sequence."""
    pool.deposit(base, other, "Alice")
    pool.swap(swap_amount, Token.BASE)
    pool.deposit(pool.get_price() * other, other, "Bob")
    pool.withdraw("Alice")


def print_event(event: PoolEvent) -> None:
    """Print a one-line summary of a pool event."""
    if event.price is None:
        price = "undefined"
    else:
        price = f"{event.price:.8f}"
    print(
        f"[{event.name}] reserves: base={event.reserve_base:,.4f} "
        f"other={event.reserve_other:,.4f} price={price}"
    )


def main() -> int:
    parser = argparse.ArgumentParser(description="Replay a constant product pool scenario")
    parser.add_argument("--base", type=float, default=500_000.0, help="Alice's base deposit")
    parser.add_argument("--other", type=float, default=5_000_000.0, help="Alice's other deposit")
    parser.add_argument("--swap", type=float, default=1_000.0, help="Other token sold for base")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args()

    configure_logging(verbose=args.verbose)

    pool = Pool(config=LedgerConfig.from_env())
    pool.subscribe(print_event)

    try:
        run_scenario(pool, args.base, args.other, args.swap)
    except LedgerError as err:
        logger.error("scenario_failed", error=str(err), error_type=type(err).__name__)
        return 1

    base_reserve, other_reserve = pool.get_reserves()
    print("=" * 60)
    print(f"Current reserves: base={base_reserve:,.4f} other={other_reserve:,.4f}")
    try:
        print(f"Current price:    {pool.get_price():.8f}")
    except UndefinedPrice:
        print("Current price:    undefined")
    print(f"Total LP shares:  {pool.total_shares:,.4f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
