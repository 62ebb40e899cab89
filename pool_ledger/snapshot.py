"""Pydantic model for persisting pool state.

The ledger itself does no I/O. A collaborator that wants durability calls
Pool.snapshot(), stores the JSON, and later restores it with
Pool.from_snapshot(PoolSnapshot.model_validate_json(data)).
"""

from __future__ import annotations

import math
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Non-negative finite float
Amount = Annotated[float, Field(ge=0, allow_inf_nan=False)]

# Strictly positive finite float (provider balances)
ShareBalance = Annotated[float, Field(gt=0, allow_inf_nan=False)]

# Relative tolerance between the sum of provider balances and total_shares
SHARE_SUM_TOLERANCE = 1e-9


class PoolSnapshot(BaseModel):
    """Serializable state of a Pool.

    invariant_k and spot_price are not stored; they are derived from the
    reserves on restore.
    """

    model_config = ConfigDict(frozen=True)

    reserve_base: Amount = 0.0
    reserve_other: Amount = 0.0
    total_shares: Amount = 0.0
    shares_by_provider: dict[str, ShareBalance] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_consistency(self) -> PoolSnapshot:
        """Reject states the ledger could never have produced."""
        empty_reserves = self.reserve_base == 0 and self.reserve_other == 0
        if (self.total_shares == 0) != empty_reserves:
            raise ValueError("total_shares must be zero exactly when both reserves are zero")
        if not empty_reserves and (self.reserve_base == 0 or self.reserve_other == 0):
            raise ValueError("A seeded pool needs both reserves positive")
        if any(not provider for provider in self.shares_by_provider):
            raise ValueError("Provider identities must be non-empty")
        share_sum = math.fsum(self.shares_by_provider.values())
        if not math.isclose(share_sum, self.total_shares, rel_tol=SHARE_SUM_TOLERANCE):
            raise ValueError(
                f"Provider balances sum to {share_sum!r}, expected total_shares {self.total_shares!r}"
            )
        return self
