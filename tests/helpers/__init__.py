"""Test helpers module for shared test utilities.

- constants: Provider identities, default amounts and tolerances
"""

from tests.helpers.constants import (
    ALICE,
    ALICE_BASE,
    ALICE_OTHER,
    ALICE_SHARES,
    BOB,
    CAROL,
    REL,
)

__all__ = [
    "ALICE",
    "BOB",
    "CAROL",
    "ALICE_BASE",
    "ALICE_OTHER",
    "ALICE_SHARES",
    "REL",
]
