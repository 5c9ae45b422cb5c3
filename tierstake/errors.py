"""
Error types raised by the staking ledger.

Every mutating ledger operation is all-or-nothing: when one of these is
raised, no position and no token balance has changed.
"""


class LedgerError(Exception):
    """Base class for ledger errors."""
    pass


class InvalidAmount(LedgerError):
    """Zero, negative or malformed amount."""
    pass


class NothingStaked(InvalidAmount):
    """Claim or unstake attempted without an active position."""
    pass


class AlreadyStaked(LedgerError):
    """Stake attempted while a position is already active."""
    pass


class Unauthorized(LedgerError):
    """Caller is not the ledger administrator."""
    pass


class TransferFailed(LedgerError):
    """A token collaborator rejected a transfer."""
    pass


class InsufficientReserve(TransferFailed):
    """Ledger custody does not cover the requested payout."""
    pass


class ArithmeticOverflow(LedgerError):
    """Reward computation exceeded the supported integer range."""
    pass
