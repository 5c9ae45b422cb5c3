#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Print the reward tiers and the reward a principal earns after a set of
holding periods.
"""

import sys
import argparse
import logging
from pathlib import Path

# Add tierstake to Python path
ROOT_DIR = str(Path(__file__).parent.parent.absolute())
sys.path.insert(0, ROOT_DIR)

import bittensor as bt
from tierstake.core.reward_schedule import RewardSchedule, SECONDS_PER_DAY
from tierstake.database.ledger_config import load_ledger_config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Show the staking reward schedule")
    parser.add_argument("--principal", type=float, default=10.0, help="Principal in whole tokens")
    parser.add_argument(
        "--days", type=int, nargs="+", default=[30, 60, 90, 150, 180, 270, 360, 450],
        help="Holding periods to evaluate, in days"
    )
    parser.add_argument("--config", type=str, default=None, help="Optional ledger config file")
    args = parser.parse_args()

    config = load_ledger_config(config_file=args.config)
    schedule = RewardSchedule(config["tiers"])
    principal = bt.Balance.from_tao(args.principal)

    print("Tiers:")
    for row in schedule.describe():
        upper = f"{row['to_days']:.0f}" if row["to_days"] is not None else "inf"
        print(f"  tier {row['tier']}: [{row['from_days']:.0f}, {upper}) days -> {row['annual_rate_pct']:.2f}% / year")

    print(f"\nRewards for {principal}:")
    for days in args.days:
        tier, _ = schedule.tier_for(days * SECONDS_PER_DAY)
        reward = schedule.compute_reward(principal, days * SECONDS_PER_DAY)
        print(f"  {days:4d} days (tier {tier}): {reward}")


if __name__ == "__main__":
    main()
