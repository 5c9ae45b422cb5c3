"""
Interface the staking ledger expects from a fungible token.
"""

import bittensor as bt

from tierstake.utils.balance import Amount


class TokenError(Exception):
    """Raised by a token implementation that rejects a transfer."""
    pass


class FungibleToken:
    """
    Abstract fungible token.

    A transfer either fully succeeds or has no effect. Implementations
    report a rejected transfer by returning False or raising TokenError.
    """

    symbol = "TOKEN"

    def transfer(self, sender: str, recipient: str, amount: Amount) -> bool:
        """Move tokens out of the sender's own balance."""
        raise NotImplementedError("Subclasses must implement transfer")

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: Amount) -> bool:
        """Move tokens out of owner's balance using an allowance granted to spender."""
        raise NotImplementedError("Subclasses must implement transfer_from")

    def balance_of(self, holder: str) -> bt.Balance:
        """Current balance of a holder."""
        raise NotImplementedError("Subclasses must implement balance_of")
