"""
Amount coercion for the staking ledger.

All amounts are whole numbers of the token's smallest unit (rao) and are
passed around as ``bittensor.Balance`` objects.
"""

from typing import Union

import bittensor as bt

from tierstake.errors import InvalidAmount

Amount = Union[bt.Balance, int]

ZERO = bt.Balance.from_rao(0)


def to_rao(amount: Amount) -> int:
    """
    Convert an amount to an integer count of rao.

    Args:
        amount: A Balance or a non-negative int of rao

    Returns:
        The amount in rao

    Raises:
        InvalidAmount: If the amount is negative or of an unsupported type
    """
    if isinstance(amount, bt.Balance):
        rao = int(amount.rao)
    elif isinstance(amount, int) and not isinstance(amount, bool):
        rao = amount
    else:
        # Floats are ambiguous between tao and rao
        raise InvalidAmount(f"Unsupported amount type: {type(amount).__name__}")

    if rao < 0:
        raise InvalidAmount(f"Amount cannot be negative: {rao}")
    return rao
