"""
CLMM Tick Mathematics

Основные формулы:
- price(i) = 1.0001^i
- sqrt_price(i) = sqrt(1.0001^i)

Один тик = шаг цены ~1 basis point. Цены считаются в Decimal
(50 знаков), чтобы результаты были воспроизводимы на любой платформе.
"""

from decimal import Decimal, getcontext
from functools import lru_cache

from ..exceptions import InvalidRange

# Высокая точность для расчётов
getcontext().prec = 50

# Константы
TICK_BASE = Decimal("1.0001")
MIN_TICK = -887272
MAX_TICK = 887272

# liquidity_gross на тике хранится как uint128
MAX_UINT128 = 2 ** 128 - 1


def check_tick(tick: int) -> None:
    """Raise InvalidRange if tick is outside [MIN_TICK, MAX_TICK]."""
    if tick < MIN_TICK or tick > MAX_TICK:
        raise InvalidRange(f"Tick {tick} out of range [{MIN_TICK}, {MAX_TICK}]")


def tick_to_price(tick: int) -> Decimal:
    """
    Конвертация тика в цену.

    price = 1.0001^tick

    Args:
        tick: Номер тика

    Returns:
        Цена token B в единицах token A
    """
    check_tick(tick)
    return TICK_BASE ** tick


@lru_cache(maxsize=4096)
def tick_to_sqrt_price(tick: int) -> Decimal:
    """
    Конвертация тика в sqrt price.

    sqrt_price = sqrt(1.0001^tick), монотонно возрастает по tick.

    Raises:
        InvalidRange: Если тик вне [MIN_TICK, MAX_TICK]
    """
    return tick_to_price(tick).sqrt()


def align_tick_to_spacing(tick: int, tick_spacing: int, round_down: bool = True) -> int:
    """
    Выравнивание тика к tick_spacing.

    Args:
        tick: Исходный тик
        tick_spacing: Шаг тиков
        round_down: True = округление вниз (к -∞), False = вверх (к +∞)

    Returns:
        Выровненный тик
    """
    if tick % tick_spacing == 0:
        return tick

    if round_down:
        # Floor division works correctly for both positive and negative
        return (tick // tick_spacing) * tick_spacing
    return ((tick // tick_spacing) + 1) * tick_spacing


def is_valid_tick(tick: int, tick_spacing: int) -> bool:
    """Tick is inside the bounds and a multiple of tick_spacing."""
    return MIN_TICK <= tick <= MAX_TICK and tick % tick_spacing == 0


def usable_tick_bounds(tick_spacing: int) -> tuple[int, int]:
    """Lowest and highest ticks a position may use with this spacing."""
    return (
        align_tick_to_spacing(MIN_TICK, tick_spacing, round_down=False),
        align_tick_to_spacing(MAX_TICK, tick_spacing, round_down=True),
    )


def max_liquidity_per_tick(tick_spacing: int) -> int:
    """
    Максимальный liquidity_gross на одном тике.

    uint128 делится поровну между всеми используемыми тиками, поэтому сумма
    активной ликвидности не может переполнить uint128 при любом наборе позиций.
    """
    if tick_spacing < 1:
        raise ValueError(f"tick_spacing must be >= 1, got {tick_spacing}")

    min_usable, max_usable = usable_tick_bounds(tick_spacing)
    num_ticks = (max_usable - min_usable) // tick_spacing + 1
    return MAX_UINT128 // num_ticks
