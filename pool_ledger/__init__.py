"""Constant product AMM pool ledger."""

from pool_ledger.config import DEFAULT_LEDGER_CONFIG, LedgerConfig
from pool_ledger.errors import (
    InsufficientLiquidity,
    InvalidAmount,
    InvalidProvider,
    InvariantViolation,
    LedgerError,
    ProviderNotFound,
    UndefinedPrice,
    UnknownToken,
)
from pool_ledger.events import DepositEvent, PoolEvent, SwapEvent, WithdrawalEvent
from pool_ledger.pool import Pool
from pool_ledger.snapshot import PoolSnapshot
from pool_ledger.tokens import Token

__version__ = "0.1.0"
__all__ = [
    # Ledger
    "Pool",
    "Token",
    "PoolSnapshot",
    # Configuration
    "LedgerConfig",
    "DEFAULT_LEDGER_CONFIG",
    # Events
    "DepositEvent",
    "WithdrawalEvent",
    "SwapEvent",
    "PoolEvent",
    # Errors
    "LedgerError",
    "InvalidAmount",
    "InvalidProvider",
    "UnknownToken",
    "InvariantViolation",
    "ProviderNotFound",
    "InsufficientLiquidity",
    "UndefinedPrice",
    "__version__",
]
