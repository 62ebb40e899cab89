"""Numeric tolerance configuration for the pool ledger."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass

# Environment variables read by LedgerConfig.from_env()
ENV_PRICE_TOLERANCE = "POOL_LEDGER_PRICE_TOLERANCE"
ENV_DUST_TOLERANCE = "POOL_LEDGER_DUST_TOLERANCE"


@dataclass(frozen=True)
class LedgerConfig:
    """Centralized tolerance settings for a Pool.

    Attributes:
        price_tolerance: Relative tolerance when comparing a deposit's implied
            price with the pool's spot price (default: 1e-9)
        dust_tolerance: Relative tolerance for treating a partial withdrawal
            of (almost) the full balance as a full exit (default: 1e-12)
    """

    price_tolerance: float = 1e-9
    dust_tolerance: float = 1e-12

    def __post_init__(self) -> None:
        for name in ("price_tolerance", "dust_tolerance"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be a finite non-negative number, got {value!r}")

    @classmethod
    def from_env(cls) -> LedgerConfig:
        """Build a config from environment variables.

        - POOL_LEDGER_PRICE_TOLERANCE: price match tolerance (default: 1e-9)
        - POOL_LEDGER_DUST_TOLERANCE: full-exit tolerance (default: 1e-12)
        """
        return cls(
            price_tolerance=float(os.environ.get(ENV_PRICE_TOLERANCE, cls.price_tolerance)),
            dust_tolerance=float(os.environ.get(ENV_DUST_TOLERANCE, cls.dust_tolerance)),
        )


# Default configuration instance
DEFAULT_LEDGER_CONFIG = LedgerConfig()
