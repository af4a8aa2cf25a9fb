"""
Configuration for the CLMM pool engine

Конфигурация пула и демо-сценария.
Значения пула можно переопределить через переменные окружения
(main.py подгружает их из .env).
"""

import os
from dataclasses import dataclass
from typing import Optional

from src.math.liquidity import DEPOSIT_FORMULAS


@dataclass
class PoolConfig:
    """Конфигурация пула."""
    tick_spacing: int = 1                 # Шаг тиков (>= 1)
    initial_tick: int = 10                # Стартовый тик пула
    deposit_formula: str = "in_range"     # "in_range" (по умолчанию) или "three_region"


# ============================================================
# DEFAULT SETTINGS
# ============================================================

DEFAULT_POOL_CONFIG = PoolConfig()

# ============================================================
# DEMO SCENARIO
# ============================================================
# Один пул, одна позиция [10, 15], один свап A -> B

DEMO_BALANCE_A = 1000
DEMO_BALANCE_B = 1000
DEMO_LOWER_TICK = 10
DEMO_UPPER_TICK = 15
DEMO_LIQUIDITY = 1_000_000
DEMO_SWAP_AMOUNT = 100

# ============================================================
# ENVIRONMENT
# ============================================================

ENV_TICK_SPACING = "CLMM_TICK_SPACING"
ENV_INITIAL_TICK = "CLMM_INITIAL_TICK"
ENV_DEPOSIT_FORMULA = "CLMM_DEPOSIT_FORMULA"


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def load_pool_config(defaults: Optional[PoolConfig] = None) -> PoolConfig:
    """
    Конфигурация пула из переменных окружения.

    CLMM_TICK_SPACING, CLMM_INITIAL_TICK, CLMM_DEPOSIT_FORMULA.
    Отсутствующие переменные берутся из defaults.

    Raises:
        ValueError: Некорректное значение переменной
    """
    defaults = defaults or DEFAULT_POOL_CONFIG

    tick_spacing = _int_from_env(ENV_TICK_SPACING, defaults.tick_spacing)
    if tick_spacing < 1:
        raise ValueError(f"{ENV_TICK_SPACING} must be >= 1, got {tick_spacing}")

    initial_tick = _int_from_env(ENV_INITIAL_TICK, defaults.initial_tick)

    deposit_formula = os.getenv(ENV_DEPOSIT_FORMULA, "").strip() or defaults.deposit_formula
    if deposit_formula not in DEPOSIT_FORMULAS:
        raise ValueError(
            f"{ENV_DEPOSIT_FORMULA} must be one of {list(DEPOSIT_FORMULAS)}, got {deposit_formula!r}"
        )

    return PoolConfig(
        tick_spacing=tick_spacing,
        initial_tick=initial_tick,
        deposit_formula=deposit_formula,
    )
