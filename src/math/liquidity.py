"""
CLMM Liquidity Mathematics

Формулы (L - ликвидность, sp - sqrt price):
- amount_a = L * (1/sp_current - 1/sp_upper)
- amount_b = L * (sp_current - sp_lower)

Внутри одного сегмента (L постоянна) обмен считается в замкнутой форме:
- Δb = L * Δsp
- Δa = L * Δ(1/sp)
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, getcontext
from typing import Literal, Tuple

# Высокая точность для финансовых расчётов
getcontext().prec = 50

ZERO = Decimal(0)
ONE = Decimal(1)

DepositFormula = Literal["in_range", "three_region"]
DEPOSIT_FORMULAS: Tuple[str, ...] = ("in_range", "three_region")


def to_decimal(value: float | int | str | Decimal) -> Decimal:
    """
    Точное преобразование числа в Decimal.

    float проходит через str(), чтобы не тащить двоичный хвост
    (Decimal(0.1) != Decimal("0.1")).

    Raises:
        ValueError: Не число, NaN или бесконечность
    """
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Not a number: {value!r}")

    if not result.is_finite():
        raise ValueError(f"Amount must be finite, got {value!r}")
    return result


def check_deposit_formula(formula: str) -> str:
    if formula not in DEPOSIT_FORMULAS:
        raise ValueError(
            f"Unknown deposit formula: {formula}. Valid formulas are: {list(DEPOSIT_FORMULAS)}"
        )
    return formula


def calculate_amount_a_for_liquidity(
    sqrt_price_lower: Decimal,
    sqrt_price_upper: Decimal,
    liquidity: int
) -> Decimal:
    """
    Количество token A между двумя ценами.

    amount_a = L * (1/sp_lower - 1/sp_upper)

    Порядок цен не важен, результат всегда >= 0.
    """
    if sqrt_price_lower > sqrt_price_upper:
        sqrt_price_lower, sqrt_price_upper = sqrt_price_upper, sqrt_price_lower

    d_liquidity = Decimal(liquidity)
    return d_liquidity / sqrt_price_lower - d_liquidity / sqrt_price_upper


def calculate_amount_b_for_liquidity(
    sqrt_price_lower: Decimal,
    sqrt_price_upper: Decimal,
    liquidity: int
) -> Decimal:
    """
    Количество token B между двумя ценами.

    amount_b = L * (sp_upper - sp_lower)
    """
    if sqrt_price_lower > sqrt_price_upper:
        sqrt_price_lower, sqrt_price_upper = sqrt_price_upper, sqrt_price_lower

    return Decimal(liquidity) * (sqrt_price_upper - sqrt_price_lower)


def calculate_amounts_in_range(
    sqrt_price_current: Decimal,
    sqrt_price_lower: Decimal,
    sqrt_price_upper: Decimal,
    liquidity: int
) -> Tuple[Decimal, Decimal]:
    """
    Депозит по формуле "цена внутри диапазона", без проверки региона.

    amount_a = L * (1/sp_current - 1/sp_upper)
    amount_b = L * (sp_current - sp_lower)

    Если текущая цена вне диапазона, одна из сумм получается отрицательной.
    Отрицательная сумма означает начисление на аккаунт, а не списание.
    """
    d_liquidity = Decimal(liquidity)
    amount_a = d_liquidity / sqrt_price_current - d_liquidity / sqrt_price_upper
    amount_b = d_liquidity * sqrt_price_current - d_liquidity * sqrt_price_lower
    return amount_a, amount_b


def calculate_amounts(
    sqrt_price_current: Decimal,
    sqrt_price_lower: Decimal,
    sqrt_price_upper: Decimal,
    liquidity: int
) -> Tuple[Decimal, Decimal]:
    """
    Депозит по трём регионам.

    Три случая:
    1. current <= lower: позиция полностью в token A
    2. current >= upper: позиция полностью в token B
    3. lower < current < upper: позиция в обоих токенах

    Returns:
        (amount_a, amount_b), обе суммы >= 0
    """
    if sqrt_price_lower >= sqrt_price_upper:
        raise ValueError("sqrt_price_upper must be > sqrt_price_lower")

    if sqrt_price_current <= sqrt_price_lower:
        amount_a = calculate_amount_a_for_liquidity(sqrt_price_lower, sqrt_price_upper, liquidity)
        return amount_a, ZERO

    if sqrt_price_current >= sqrt_price_upper:
        amount_b = calculate_amount_b_for_liquidity(sqrt_price_lower, sqrt_price_upper, liquidity)
        return ZERO, amount_b

    amount_a = calculate_amount_a_for_liquidity(sqrt_price_current, sqrt_price_upper, liquidity)
    amount_b = calculate_amount_b_for_liquidity(sqrt_price_lower, sqrt_price_current, liquidity)
    return amount_a, amount_b


def calculate_withdrawal_at_price(
    target_sqrt_price: Decimal,
    liquidity: int
) -> Tuple[Decimal, Decimal]:
    """
    Вывод позиции по одной целевой цене (режим "in_range").

    amount_a = L / sp_target
    amount_b = L * sp_target
    """
    if target_sqrt_price <= 0:
        raise ValueError("target_sqrt_price must be positive")

    d_liquidity = Decimal(liquidity)
    return d_liquidity / target_sqrt_price, d_liquidity * target_sqrt_price


@dataclass
class SegmentStep:
    """Результат одного сегмента свапа."""
    sqrt_price_next: Decimal      # Цена после сегмента
    amount_in: Decimal            # Списано со входного токена
    amount_out: Decimal           # Начислено в выходном токене
    reached_boundary: bool        # Сегмент упёрся в границу тика


def compute_step_a_in(
    sqrt_price: Decimal,
    sqrt_price_boundary: Decimal,
    liquidity: int,
    amount_remaining: Decimal
) -> SegmentStep:
    """
    Один сегмент свапа A -> B, цена растёт.

    Вход A двигает 1/sp вниз: 1/sp_new = 1/sp - a/L.
    Выход B: L * (sp_new - sp).

    Args:
        sqrt_price: Текущая sqrt price
        sqrt_price_boundary: sqrt price следующего тика сверху (>= sqrt_price)
        liquidity: Активная ликвидность сегмента (> 0)
        amount_remaining: Оставшийся вход token A (> 0)
    """
    d_liquidity = Decimal(liquidity)
    amount_to_boundary = d_liquidity / sqrt_price - d_liquidity / sqrt_price_boundary

    if amount_remaining < amount_to_boundary:
        inv_sqrt_price_next = ONE / sqrt_price - amount_remaining / d_liquidity
        sqrt_price_next = ONE / inv_sqrt_price_next
        return SegmentStep(
            sqrt_price_next=sqrt_price_next,
            amount_in=amount_remaining,
            amount_out=d_liquidity * (sqrt_price_next - sqrt_price),
            reached_boundary=False,
        )

    return SegmentStep(
        sqrt_price_next=sqrt_price_boundary,
        amount_in=amount_to_boundary,
        amount_out=d_liquidity * (sqrt_price_boundary - sqrt_price),
        reached_boundary=True,
    )


def compute_step_b_in(
    sqrt_price: Decimal,
    sqrt_price_boundary: Decimal,
    liquidity: int,
    amount_remaining: Decimal
) -> SegmentStep:
    """
    Один сегмент свапа B -> A, цена падает.

    Вход B двигает sp вниз: sp_new = sp - b/L.
    Выход A: L * (1/sp_new - 1/sp).

    Args:
        sqrt_price: Текущая sqrt price
        sqrt_price_boundary: sqrt price тика снизу (<= sqrt_price)
        liquidity: Активная ликвидность сегмента (> 0)
        amount_remaining: Оставшийся вход token B (> 0)
    """
    d_liquidity = Decimal(liquidity)
    amount_to_boundary = d_liquidity * (sqrt_price - sqrt_price_boundary)

    if amount_remaining < amount_to_boundary:
        sqrt_price_next = sqrt_price - amount_remaining / d_liquidity
        return SegmentStep(
            sqrt_price_next=sqrt_price_next,
            amount_in=amount_remaining,
            amount_out=d_liquidity / sqrt_price_next - d_liquidity / sqrt_price,
            reached_boundary=False,
        )

    return SegmentStep(
        sqrt_price_next=sqrt_price_boundary,
        amount_in=amount_to_boundary,
        amount_out=d_liquidity / sqrt_price_boundary - d_liquidity / sqrt_price,
        reached_boundary=True,
    )
