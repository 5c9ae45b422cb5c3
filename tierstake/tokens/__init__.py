"""
Fungible token collaborators used by the staking ledger.
"""

from tierstake.tokens.base import FungibleToken, TokenError
from tierstake.tokens.memory_token import InMemoryToken

__all__ = [
    "FungibleToken",
    "TokenError",
    "InMemoryToken",
]
