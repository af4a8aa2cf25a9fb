"""
Shared fixtures for all tests.
"""

from decimal import Decimal

import pytest

from src.account import Account
from src.pool import Pool

from helpers import ALICE, BOB, TOKEN_A, TOKEN_B


@pytest.fixture
def pool():
    """Pool at tick 10, spacing 1, "in_range" deposit formula."""
    return Pool(TOKEN_A, TOKEN_B, current_tick=10)


@pytest.fixture
def three_region_pool():
    """Pool at tick 10 using the three-region deposit formula."""
    return Pool(TOKEN_A, TOKEN_B, current_tick=10, deposit_formula="three_region")


@pytest.fixture
def account():
    """Account with 1000 A / 1000 B."""
    return Account(address=ALICE, balance_a=Decimal(1000), balance_b=Decimal(1000))


@pytest.fixture
def rich_account():
    """Account with enough funds for multi-position scenarios."""
    return Account(address=ALICE, balance_a=Decimal(1_000_000), balance_b=Decimal(1_000_000))


@pytest.fixture
def other_account():
    return Account(address=BOB, balance_a=Decimal(1000), balance_b=Decimal(1000))
