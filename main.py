"""
CLMM Pool Demo

Демонстрация: один пул, одна позиция, один свап A -> B.
Параметры пула берутся из .env (см. config.py).
"""

import logging
import sys

from dotenv import load_dotenv

from config import (
    DEMO_BALANCE_A,
    DEMO_BALANCE_B,
    DEMO_LIQUIDITY,
    DEMO_LOWER_TICK,
    DEMO_SWAP_AMOUNT,
    DEMO_UPPER_TICK,
    load_pool_config,
)
from src.account import Account
from src.exceptions import PoolError
from src.pool import Pool, SwapResult
from src.utils import random_address

load_dotenv()

logger = logging.getLogger(__name__)


def setup_logging(level: int = logging.INFO) -> None:
    """Console handler for all loggers."""
    root = logging.getLogger()
    root.setLevel(level)

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        root.addHandler(handler)


def print_account(account: Account) -> None:
    print(f"Account {account.address}")
    print(f"  balance A: {account.balance_a:.6f}")
    print(f"  balance B: {account.balance_b:.6f}")


def print_swap(result: SwapResult) -> None:
    print(f"Swap {result.token_in}: requested {result.amount_requested}, "
          f"in {result.amount_in:.6f}, out {result.amount_out:.6f}")
    print(f"  ticks crossed: {result.ticks_crossed}, tick after: {result.tick_after}")
    if not result.filled:
        print(f"  PARTIAL FILL: {result.amount_remaining:.6f} not swapped")


def run_demo() -> Pool:
    """Build one pool, open one position, run one swap."""
    config = load_pool_config()
    pool = Pool.from_config(random_address(), random_address(), config)
    account = Account.create(balance_a=DEMO_BALANCE_A, balance_b=DEMO_BALANCE_B)

    print("=" * 70)
    print("CLMM POOL DEMO")
    print("=" * 70)
    print(pool)

    pool.open_position(account, DEMO_LOWER_TICK, DEMO_UPPER_TICK, DEMO_LIQUIDITY)
    print("\n--- After open_position ---")
    print_account(account)

    result = pool.swap_a_for_b(account, DEMO_SWAP_AMOUNT)
    print("\n--- After swap_a_for_b ---")
    print_swap(result)
    print_account(account)
    print(pool)

    for tick in pool.registry.ticks():
        print(f"  tick {tick.index}: gross={tick.liquidity_gross}, net={tick.liquidity_net}")

    return pool


def main():
    """Главная функция."""
    setup_logging()
    try:
        run_demo()
    except (PoolError, ValueError) as e:
        logger.error(f"Demo failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
