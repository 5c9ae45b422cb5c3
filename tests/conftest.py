"""
Shared fixtures for the staking ledger tests.
"""

import pytest
import bittensor as bt

from tierstake.core.event_manager import EventManager
from tierstake.core.ledger import StakingLedger
from tierstake.database.position_store import InMemoryPositionStore, SQLPositionStore
from tierstake.tokens.memory_token import InMemoryToken
from tierstake.utils.clock import ManualClock

ADMIN = "admin"
ALICE = "alice"
BOB = "bob"
LEDGER_ADDRESS = "ledger"

START = 1_700_000_000
DAY = 24 * 60 * 60
YEAR = 365 * DAY

PRINCIPAL = bt.Balance.from_rao(10 * 10 ** 9)    # 10 tokens
WALLET = bt.Balance.from_rao(100 * 10 ** 9)      # 100 tokens per participant
RESERVE = bt.Balance.from_rao(10 ** 6 * 10 ** 9)  # 1,000,000 reward tokens


@pytest.fixture
def clock():
    return ManualClock(start=START)


@pytest.fixture
def stake_token():
    return InMemoryToken("STK")


@pytest.fixture
def reward_token():
    return InMemoryToken("RWD")


@pytest.fixture
def events():
    return EventManager()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        yield InMemoryPositionStore()
    else:
        sql_store = SQLPositionStore("sqlite:///:memory:")
        yield sql_store
        sql_store.dispose()


def make_ledger(stake_token, reward_token, clock, store, events, reserve=RESERVE, allowance=PRINCIPAL, **kwargs):
    ledger = StakingLedger(
        stake_token=stake_token,
        reward_token=reward_token,
        administrator=ADMIN,
        store=store,
        events=events,
        clock=clock,
        address=LEDGER_ADDRESS,
        **kwargs
    )
    reward_token.mint(LEDGER_ADDRESS, reserve)
    # Participants approve the stake they are about to make and nothing on the reward token
    for participant in (ALICE, BOB):
        stake_token.mint(participant, WALLET)
        stake_token.approve(participant, LEDGER_ADDRESS, allowance)
    return ledger


@pytest.fixture
def ledger(stake_token, reward_token, clock, store, events):
    return make_ledger(stake_token, reward_token, clock, store, events)
