"""Token identifiers for the two sides of a pool."""

from __future__ import annotations

from enum import Enum

from pool_ledger.errors import UnknownToken


class Token(str, Enum):
    """Which reserve of the pool an amount refers to."""

    BASE = "base"
    OTHER = "other"

    @property
    def counterpart(self) -> Token:
        """The opposite side of the pool."""
        return Token.OTHER if self is Token.BASE else Token.BASE


def parse_token(token: Token | str) -> Token:
    """Resolve a Token or its string value.

    Args:
        token: Token enum member or "base" / "other" (case insensitive)

    Returns:
        The matching Token

    Raises:
        UnknownToken: If the value names neither side of the pool
    """
    if isinstance(token, Token):
        return token
    if isinstance(token, str):
        try:
            return Token(token.lower())
        except ValueError as err:
            raise UnknownToken(f"Token {token!r} not in pool") from err
    raise UnknownToken(f"Token must be Token or str, got {type(token).__name__}")
