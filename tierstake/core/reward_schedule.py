"""
Tiered reward calculation for the staking ledger.

The elapsed holding time selects exactly one tier. The tier's annual rate
then accrues linearly over the whole elapsed time:

    reward = principal * rate * elapsed // (RATE_SCALE * SECONDS_PER_YEAR)

Rates are integers scaled by RATE_SCALE (10**18 == 100% per year).
"""

import logging
from typing import Dict, List, Sequence, Tuple, Union

import bittensor as bt

from tierstake.errors import ArithmeticOverflow
from tierstake.utils.balance import Amount, to_rao

logger = logging.getLogger(__name__)

RATE_SCALE = 10 ** 18
SECONDS_PER_DAY = 24 * 60 * 60
SECONDS_PER_YEAR = 365 * SECONDS_PER_DAY

# Largest intermediate product accepted (unsigned 256-bit)
MAX_PRODUCT = 2 ** 256 - 1

# Define reward tiers
# Format: (threshold_seconds, annual_rate)
DEFAULT_TIERS = (
    (0, 5 * RATE_SCALE // 100),                       # < 3 months: 5%
    (90 * SECONDS_PER_DAY, 8 * RATE_SCALE // 100),    # >= 3 months: 8%
    (180 * SECONDS_PER_DAY, 12 * RATE_SCALE // 100),  # >= 6 months: 12%
    (360 * SECONDS_PER_DAY, 18 * RATE_SCALE // 100),  # >= 12 months: 18%
)


def validate_tiers(tiers: Sequence[Tuple[int, int]]) -> Tuple[Tuple[int, int], ...]:
    """
    Check a tier table and return it as a tuple of int pairs.

    Raises:
        ValueError: If the table is empty, does not start at 0, or its
            thresholds or rates are not strictly increasing
    """
    if not tiers:
        raise ValueError("Reward schedule needs at least one tier")

    table = tuple((int(threshold), int(rate)) for threshold, rate in tiers)

    if table[0][0] != 0:
        raise ValueError("First tier must start at 0 seconds")
    if any(rate < 0 for _, rate in table):
        raise ValueError("Tier rates cannot be negative")

    for (prev_threshold, prev_rate), (threshold, rate) in zip(table, table[1:]):
        if threshold <= prev_threshold:
            raise ValueError(f"Tier thresholds must increase: {prev_threshold} -> {threshold}")
        if rate <= prev_rate:
            raise ValueError(f"Tier rates must increase: {prev_rate} -> {rate}")

    return table


def parse_rate(text: str) -> int:
    """Parse '12%' or '0.12' style rates, or a raw scaled integer."""
    text = text.strip()
    if text.endswith("%"):
        numerator, denominator = _decimal_ratio(text[:-1])
        return numerator * RATE_SCALE // (denominator * 100)
    if "." in text:
        numerator, denominator = _decimal_ratio(text)
        return numerator * RATE_SCALE // denominator
    return int(text)


def _decimal_ratio(text: str) -> Tuple[int, int]:
    whole, _, fraction = text.strip().partition(".")
    digits = fraction or ""
    return int((whole or "0") + digits), 10 ** len(digits)


def parse_tiers(value: Union[str, Sequence]) -> Tuple[Tuple[int, int], ...]:
    """
    Parse a tier table from config.

    Accepts either a sequence of (threshold, rate) pairs or a string such as
    "0:5%,7776000:8%,15552000:12%,31104000:18%".
    """
    if isinstance(value, str):
        pairs = []
        for item in value.split(","):
            if not item.strip():
                continue
            threshold, sep, rate = item.partition(":")
            if not sep:
                raise ValueError(f"Malformed tier entry: {item!r}")
            pairs.append((int(threshold), parse_rate(rate)))
        return validate_tiers(pairs)

    return validate_tiers(
        [(threshold, parse_rate(rate) if isinstance(rate, str) else rate) for threshold, rate in value]
    )


class RewardSchedule:
    """
    Immutable stepped reward schedule.

    Thresholds split elapsed time into buckets [0, t1), [t1, t2), ...,
    [tn, inf). Only the bucket containing the elapsed time is used; rates of
    the buckets crossed along the way are not blended in.
    """

    def __init__(self, tiers: Sequence[Tuple[int, int]] = DEFAULT_TIERS):
        self._tiers = validate_tiers(tiers)

    @property
    def tiers(self) -> Tuple[Tuple[int, int], ...]:
        return self._tiers

    def tier_for(self, elapsed_seconds: int) -> Tuple[int, int]:
        """
        Find the tier that applies to an elapsed duration.

        Returns:
            (tier_index, annual_rate)
        """
        if elapsed_seconds < 0:
            raise ValueError(f"Elapsed time cannot be negative: {elapsed_seconds}")

        index = 0
        for i, (threshold, _) in enumerate(self._tiers):
            if elapsed_seconds >= threshold:
                index = i
            else:
                break
        return index, self._tiers[index][1]

    def compute_reward(self, principal: Amount, elapsed_seconds: int) -> bt.Balance:
        """
        Compute the reward accrued by a principal over an elapsed duration.

        Args:
            principal: Staked amount
            elapsed_seconds: Seconds since the reward baseline

        Returns:
            The reward, rounded down to a whole rao

        Raises:
            ArithmeticOverflow: If the intermediate product exceeds 256 bits
        """
        principal_rao = to_rao(principal)
        tier, rate = self.tier_for(elapsed_seconds)

        product = principal_rao * rate * elapsed_seconds
        if product > MAX_PRODUCT:
            raise ArithmeticOverflow(
                f"Reward overflow: principal={principal_rao} rate={rate} elapsed={elapsed_seconds}"
            )

        reward = product // (RATE_SCALE * SECONDS_PER_YEAR)

        logger.debug(
            f"Reward calculation: principal={principal_rao}, elapsed={elapsed_seconds}s, "
            f"tier={tier}, rate={rate}, reward={reward}"
        )

        return bt.Balance.from_rao(reward)

    def describe(self) -> List[Dict[str, Union[int, float, None]]]:
        """
        Get the tier table for documentation and display purposes.

        Returns:
            One dict per tier with its bounds in days and its annual rate
            as a percentage
        """
        rows = []
        for i, (threshold, rate) in enumerate(self._tiers):
            upper = self._tiers[i + 1][0] if i + 1 < len(self._tiers) else None
            rows.append({
                "tier": i,
                "from_days": threshold / SECONDS_PER_DAY,
                "to_days": upper / SECONDS_PER_DAY if upper is not None else None,
                "annual_rate_pct": rate * 100 / RATE_SCALE,
            })
        return rows
