#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Run a staking lifecycle against in-memory tokens and a manual clock:
stake, claim after a first holding period, unstake after a second one.
"""

import sys
import argparse
import logging
from pathlib import Path

# Add tierstake to Python path
ROOT_DIR = str(Path(__file__).parent.parent.absolute())
sys.path.insert(0, ROOT_DIR)

import bittensor as bt
from tierstake.core.event_manager import EventManager
from tierstake.core.ledger import StakingLedger
from tierstake.core.reward_schedule import SECONDS_PER_DAY
from tierstake.database.ledger_config import load_ledger_config
from tierstake.tokens.memory_token import InMemoryToken
from tierstake.utils.clock import ManualClock

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def log_event(event_type, data):
    logger.info(f"event {event_type}: {data}")


def run_simulation(amount: float, claim_after_days: int, unstake_after_days: int, reserve: float):
    config = load_ledger_config({"administrator": "admin"})

    stake_token = InMemoryToken("STK")
    reward_token = InMemoryToken("RWD")
    clock = ManualClock(start=1_700_000_000)
    events = EventManager()
    for event_type in ("stake", "claim", "unstake", "recover"):
        events.subscribe(event_type, log_event)

    ledger = StakingLedger.from_config(config, stake_token, reward_token, events=events, clock=clock)

    principal = bt.Balance.from_tao(amount)
    reward_token.mint(ledger.address, bt.Balance.from_tao(reserve))
    stake_token.mint("alice", principal)
    stake_token.approve("alice", ledger.address, principal)

    ledger.stake("alice", principal)

    clock.advance(claim_after_days * SECONDS_PER_DAY)
    claimed = ledger.claim_reward("alice")
    logger.info(f"Claimed {claimed} after {claim_after_days} days")

    clock.advance(unstake_after_days * SECONDS_PER_DAY)
    returned, reward = ledger.unstake("alice")
    logger.info(f"Unstaked {returned} with reward {reward} after {unstake_after_days} more days")

    logger.info(f"alice STK balance: {stake_token.balance_of('alice')}")
    logger.info(f"alice RWD balance: {reward_token.balance_of('alice')}")
    logger.info(f"Remaining reserve: {ledger.reserve()}")

    for entry in ledger.history():
        logger.info(f"journal: {entry.to_dict()}")

    return ledger


def main():
    parser = argparse.ArgumentParser(description="Simulate a staking lifecycle")
    parser.add_argument("--amount", type=float, default=10.0, help="Stake in whole tokens")
    parser.add_argument("--claim-after", type=int, default=100, help="Days before claiming")
    parser.add_argument("--unstake-after", type=int, default=200, help="Days after the claim before unstaking")
    parser.add_argument("--reserve", type=float, default=1000.0, help="Initial reward reserve in whole tokens")
    args = parser.parse_args()

    run_simulation(args.amount, args.claim_after, args.unstake_after, args.reserve)


if __name__ == "__main__":
    main()
