"""
Shared constants and independent math for tests.
"""

from decimal import Decimal

TOKEN_A = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
TOKEN_B = "0xbb4CdB9CBd36B01bD1cBaEBF2De08d9173bc095c"
ALICE = "0x1234567890123456789012345678901234567890"
BOB = "0x000000000000000000000000000000000000dEaD"

# Допуск для Decimal сравнений (контекст 50 знаков)
TOL = Decimal("1e-30")


def sqrt_price(tick: int) -> Decimal:
    """sqrt price, computed independently of the module under test."""
    return (Decimal("1.0001") ** tick).sqrt()


def assert_close(actual: Decimal, expected: Decimal, tol: Decimal = TOL):
    assert abs(actual - expected) < tol, f"{actual} != {expected}"
