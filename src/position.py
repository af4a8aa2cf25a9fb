"""Position - liquidity range owned by one account."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass
class Position:
    """Одна позиция ликвидности в пуле."""
    owner: str                    # Адрес аккаунта-владельца
    lower_tick: int               # Нижний тик
    upper_tick: int               # Верхний тик
    liquidity: int                # Ликвидность (> 0)
    amount_a: Decimal             # Внесено token A при открытии
    amount_b: Decimal             # Внесено token B при открытии
    closed: bool = False          # True после close_position

    @property
    def tick_range(self) -> tuple[int, int]:
        return self.lower_tick, self.upper_tick

    def contains_tick(self, tick: int) -> bool:
        """Tick lies inside [lower_tick, upper_tick], bounds included."""
        return self.lower_tick <= tick <= self.upper_tick
