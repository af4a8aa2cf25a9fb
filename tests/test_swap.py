"""
Tests for the swap engine: Pool.swap_a_for_b and Pool.swap_b_for_a.

Scenarios start from a pool at tick 10 holding a position [10, 15] with
L = 1_000_000. Expected values are recomputed from the closed-form segment
formulas:
    A side: L * Δ(1/sp)
    B side: L * Δsp
"""

from decimal import Decimal

import pytest

from src.account import Account
from src.exceptions import InsufficientBalance, NoLiquidity
from src.math.ticks import MAX_TICK, MIN_TICK
from src.pool import Pool

from helpers import ALICE, TOKEN_A, TOKEN_B, assert_close, sqrt_price

L = 1_000_000


@pytest.fixture
def funded_pool(pool, account):
    """Pool at tick 10 with one position [10, 15], L = 1_000_000."""
    pool.open_position(account, 10, 15, L)
    return pool


def a_to_reach(liquidity: int, tick_from: int, tick_to: int) -> Decimal:
    return liquidity / sqrt_price(tick_from) - liquidity / sqrt_price(tick_to)


def b_between(liquidity: int, tick_from: int, tick_to: int) -> Decimal:
    return liquidity * (sqrt_price(tick_to) - sqrt_price(tick_from))


class TestSwapArguments:

    def test_zero_amount_is_noop(self, funded_pool, account):
        balance_a, balance_b = account.balance_a, account.balance_b

        result = funded_pool.swap_a_for_b(account, 0)

        assert result.amount_in == 0
        assert result.amount_out == 0
        assert result.filled
        assert account.balance_a == balance_a
        assert account.balance_b == balance_b
        assert funded_pool.current_tick == 10
        assert funded_pool.current_sqrt_price == sqrt_price(10)

    def test_zero_amount_on_empty_pool_is_noop(self, pool, account):
        result = pool.swap_b_for_a(account, 0)
        assert result.amount_in == 0
        assert account.balance_b == Decimal(1000)

    def test_negative_amount(self, funded_pool, account):
        with pytest.raises(ValueError):
            funded_pool.swap_a_for_b(account, -1)

    @pytest.mark.parametrize("amount", ["abc", "NaN", float("inf")], ids=["text", "nan", "inf"])
    def test_malformed_amount_leaves_state_unchanged(self, funded_pool, account, amount):
        balance_a = account.balance_a

        with pytest.raises(ValueError):
            funded_pool.swap_a_for_b(account, amount)
        with pytest.raises(ValueError):
            funded_pool.swap_b_for_a(account, amount)

        assert account.balance_a == balance_a
        assert funded_pool.current_sqrt_price == sqrt_price(10)

    def test_no_liquidity(self, pool, account):
        with pytest.raises(NoLiquidity) as exc_info:
            pool.swap_a_for_b(account, 10)
        assert exc_info.value.tick == 10

    def test_no_liquidity_b_for_a(self, pool, account):
        with pytest.raises(NoLiquidity):
            pool.swap_b_for_a(account, 10)

    def test_insufficient_balance_leaves_state_unchanged(self, funded_pool, account):
        balance_a = account.balance_a

        with pytest.raises(InsufficientBalance):
            funded_pool.swap_a_for_b(account, 2000)

        assert account.balance_a == balance_a
        assert funded_pool.current_sqrt_price == sqrt_price(10)

    def test_accepts_float_and_str(self, funded_pool, account):
        r1 = funded_pool.swap_a_for_b(account, 0.5)
        r2 = funded_pool.swap_a_for_b(account, "0.5")
        assert r1.amount_in == r2.amount_in == Decimal("0.5")


class TestSwapAForBSingleSegment:
    """swap_a_for_b with an input too small to reach tick 11."""

    def test_single_segment(self, funded_pool, account):
        balance_a, balance_b = account.balance_a, account.balance_b
        # Reaching tick 11 needs ~49.97 A, 10 stays inside tick 10
        assert a_to_reach(L, 10, 11) > 10

        result = funded_pool.swap_a_for_b(account, 10)

        expected_price = 1 / (1 / sqrt_price(10) - Decimal(10) / L)
        expected_out = L * (expected_price - sqrt_price(10))

        assert result.filled
        assert result.ticks_crossed == 0
        assert result.amount_in == Decimal(10)
        assert_close(result.amount_out, expected_out)
        assert funded_pool.current_tick == 10
        assert_close(funded_pool.current_sqrt_price, expected_price)
        assert sqrt_price(10) < funded_pool.current_sqrt_price < sqrt_price(11)

        assert_close(account.balance_a, balance_a - 10)
        assert_close(account.balance_b, balance_b + expected_out)

    def test_split_swaps_match_single_swap(self, funded_pool, account):
        funded_pool.swap_a_for_b(account, 5)
        funded_pool.swap_a_for_b(account, 5)

        expected_price = 1 / (1 / sqrt_price(10) - Decimal(10) / L)
        assert_close(funded_pool.current_sqrt_price, expected_price)

    def test_liquidity_unchanged_inside_segment(self, funded_pool, account):
        funded_pool.swap_a_for_b(account, 10)
        assert funded_pool.liquidity == L
        assert funded_pool.registry.get(10).liquidity_gross == L


class TestSwapAForBCrossing:

    def test_partial_fill_at_uninitialized_tick(self, funded_pool, account):
        balance_a, balance_b = account.balance_a, account.balance_b

        result = funded_pool.swap_a_for_b(account, 100)

        consumed = a_to_reach(L, 10, 11)
        assert not result.filled
        assert result.ticks_crossed == 1
        assert result.tick_after == 11
        assert_close(result.amount_in, consumed)
        assert_close(result.amount_remaining, Decimal(100) - consumed)
        assert_close(result.amount_out, b_between(L, 10, 11))

        assert funded_pool.current_tick == 11
        assert funded_pool.current_sqrt_price == sqrt_price(11)
        assert funded_pool.liquidity == 0

        # Only the consumed input leaves the account
        assert_close(account.balance_a, balance_a - consumed)
        assert_close(account.balance_b, balance_b + b_between(L, 10, 11))

    def test_crossing_two_ticks(self, rich_account):
        pool = Pool(TOKEN_A, TOKEN_B, current_tick=10)
        pool.open_position(rich_account, 10, 15, L)
        pool.open_position(rich_account, 11, 15, 2 * L)
        balance_a, balance_b = rich_account.balance_a, rich_account.balance_b

        result = pool.swap_a_for_b(rich_account, 500)

        consumed = a_to_reach(L, 10, 11) + a_to_reach(2 * L, 11, 12)
        received = b_between(L, 10, 11) + b_between(2 * L, 11, 12)

        assert result.ticks_crossed == 2
        assert pool.current_tick == 12
        assert pool.current_sqrt_price == sqrt_price(12)
        assert not result.filled
        assert_close(result.amount_in, consumed)
        assert_close(result.amount_out, received)
        assert_close(rich_account.balance_a, balance_a - consumed)
        assert_close(rich_account.balance_b, balance_b + received)

        # Ticks themselves are not touched by swaps
        assert pool.registry.get(10).liquidity_gross == L
        assert pool.registry.get(11).liquidity_gross == 2 * L
        assert pool.registry.total_liquidity_net() == 0

    def test_crossing_then_fill_inside_next_segment(self, rich_account):
        pool = Pool(TOKEN_A, TOKEN_B, current_tick=10)
        pool.open_position(rich_account, 10, 15, L)
        pool.open_position(rich_account, 11, 15, 2 * L)

        amount = a_to_reach(L, 10, 11) + Decimal(1)
        result = pool.swap_a_for_b(rich_account, amount)

        assert result.filled
        assert result.ticks_crossed == 1
        assert pool.current_tick == 11
        assert sqrt_price(11) < pool.current_sqrt_price < sqrt_price(12)

    def test_swap_after_partial_fill_has_no_liquidity(self, funded_pool, account):
        funded_pool.swap_a_for_b(account, 100)
        with pytest.raises(NoLiquidity):
            funded_pool.swap_a_for_b(account, 1)

    def test_tick_spacing_steps(self, rich_account):
        pool = Pool(TOKEN_A, TOKEN_B, current_tick=0, tick_spacing=10)
        pool.open_position(rich_account, 0, 100, L)
        pool.open_position(rich_account, 10, 100, 2 * L)

        result = pool.swap_a_for_b(rich_account, 10_000)

        assert result.ticks_crossed == 2
        assert pool.current_tick == 20
        assert_close(result.amount_in, a_to_reach(L, 0, 10) + a_to_reach(2 * L, 10, 20))

    def test_stops_at_max_tick(self):
        account = Account(address=ALICE, balance_a=Decimal(10), balance_b=Decimal(10))
        pool = Pool(TOKEN_A, TOKEN_B, current_tick=MAX_TICK - 1)
        pool.open_position(account, MAX_TICK - 1, MAX_TICK, 1_000)

        result = pool.swap_a_for_b(account, 1)

        assert result.ticks_crossed == 1
        assert pool.current_tick == MAX_TICK
        assert not result.filled


class TestSwapBForA:

    def test_at_lower_boundary_fills_nothing(self, funded_pool, account):
        """Price sits on tick 10 and tick 9 is empty: nothing to sell into."""
        balance_b = account.balance_b

        result = funded_pool.swap_b_for_a(account, 10)

        assert result.amount_in == 0
        assert result.ticks_crossed == 0
        assert not result.filled
        assert funded_pool.current_tick == 10
        assert account.balance_b == balance_b

    def test_single_segment_after_price_moved_up(self, funded_pool, account):
        funded_pool.swap_a_for_b(account, 10)
        start_price = funded_pool.current_sqrt_price

        result = funded_pool.swap_b_for_a(account, 1)

        expected_price = start_price - Decimal(1) / L
        assert result.filled
        assert result.ticks_crossed == 0
        assert_close(funded_pool.current_sqrt_price, expected_price)
        assert_close(result.amount_out, L / expected_price - L / start_price)

    def test_stops_at_active_tick_boundary(self, funded_pool, account):
        funded_pool.swap_a_for_b(account, 10)
        start_price = funded_pool.current_sqrt_price

        result = funded_pool.swap_b_for_a(account, 100)

        assert not result.filled
        assert result.ticks_crossed == 0
        assert funded_pool.current_tick == 10
        assert funded_pool.current_sqrt_price == sqrt_price(10)
        assert_close(result.amount_in, L * (start_price - sqrt_price(10)))
        # Selling back all the way returns the A put in
        assert_close(result.amount_out, Decimal(10), Decimal("1e-20"))

    def test_crossing_down(self, rich_account):
        pool = Pool(TOKEN_A, TOKEN_B, current_tick=10)
        pool.open_position(rich_account, 9, 15, L)
        pool.open_position(rich_account, 10, 15, 2 * L)
        balance_a, balance_b = rich_account.balance_a, rich_account.balance_b

        result = pool.swap_b_for_a(rich_account, 1000)

        consumed = b_between(L, 9, 10)
        received = a_to_reach(L, 9, 10)

        assert result.ticks_crossed == 1
        assert pool.current_tick == 9
        assert pool.current_sqrt_price == sqrt_price(9)
        assert not result.filled
        assert_close(result.amount_in, consumed)
        assert_close(result.amount_out, received)
        assert_close(rich_account.balance_b, balance_b - consumed)
        assert_close(rich_account.balance_a, balance_a + received)

    def test_stops_at_min_tick(self):
        account = Account(address=ALICE, balance_a=Decimal(10) ** 40, balance_b=Decimal(10) ** 40)
        pool = Pool(TOKEN_A, TOKEN_B, current_tick=MIN_TICK + 1)
        pool.open_position(account, MIN_TICK, MIN_TICK + 1, 1_000)

        result = pool.swap_b_for_a(account, 1)

        assert result.ticks_crossed == 1
        assert result.tick_after == MIN_TICK
        assert pool.current_tick == MIN_TICK
        assert pool.current_sqrt_price == sqrt_price(MIN_TICK)
        assert not result.filled
        assert 0 < result.amount_in < 1

    def test_round_trip_restores_price(self, funded_pool, account):
        up = funded_pool.swap_a_for_b(account, 20)
        down = funded_pool.swap_b_for_a(account, up.amount_out)

        assert funded_pool.current_tick == 10
        assert funded_pool.current_sqrt_price == sqrt_price(10)
        assert_close(down.amount_out, Decimal(20), Decimal("1e-20"))

    def test_boundary_hit_crosses_into_initialized_tick(self, rich_account):
        """Landing exactly on price(active) moves into the tick below when it has liquidity."""
        pool = Pool(TOKEN_A, TOKEN_B, current_tick=10)
        pool.open_position(rich_account, 9, 15, L)
        pool.open_position(rich_account, 10, 15, L)

        up = pool.swap_a_for_b(rich_account, 20)
        down = pool.swap_b_for_a(rich_account, up.amount_out)

        assert down.ticks_crossed == 1
        assert pool.current_tick == 9
        assert pool.current_sqrt_price == sqrt_price(10)
