"""
Tick registry: sparse per-tick liquidity accounting plus a presence index.

Includes:
- TickInfo: liquidity_gross / liquidity_net of one tick
- TickBitmap: word-packed presence index (256 compressed ticks per word)
- TickRegistry: add/remove liquidity and next-initialized-tick search

Ticks are created lazily on the first add_liquidity and removed when their
liquidity_gross drops back to zero.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, Literal, Optional, Tuple

from .exceptions import InvalidRange, TickLiquidityError
from .math.ticks import is_valid_tick, max_liquidity_per_tick, usable_tick_bounds

logger = logging.getLogger(__name__)

Direction = Literal["up", "down"]

WORD_BITS = 256


@dataclass
class TickInfo:
    """Liquidity accounting of one tick."""
    index: int
    liquidity_gross: int = 0      # Вся ликвидность, ссылающаяся на тик
    liquidity_net: int = 0        # Изменение активной ликвидности при пересечении вверх
    initialized: bool = False


class TickBitmap:
    """
    Word-packed presence index over spacing-aligned ticks.

    A tick is compressed to tick // tick_spacing; bit (compressed % 256) of
    word (compressed // 256) marks it initialized. Words are kept in a dict,
    so the domain is sparse and empty words are dropped.
    """

    def __init__(self, tick_spacing: int):
        self.tick_spacing = tick_spacing
        self._words: Dict[int, int] = {}

        min_usable, max_usable = usable_tick_bounds(tick_spacing)
        self._min_word = (min_usable // tick_spacing) >> 8
        self._max_word = (max_usable // tick_spacing) >> 8

    def _position(self, tick: int) -> Tuple[int, int]:
        compressed = tick // self.tick_spacing
        return compressed >> 8, compressed & 0xFF

    def is_set(self, tick: int) -> bool:
        word_pos, bit_pos = self._position(tick)
        return bool(self._words.get(word_pos, 0) >> bit_pos & 1)

    def flip(self, tick: int) -> None:
        """Flip the presence bit of an aligned tick."""
        if tick % self.tick_spacing != 0:
            raise InvalidRange(f"Tick {tick} is not a multiple of spacing {self.tick_spacing}")

        word_pos, bit_pos = self._position(tick)
        word = self._words.get(word_pos, 0) ^ (1 << bit_pos)

        # Clean up empty words
        if word:
            self._words[word_pos] = word
        else:
            self._words.pop(word_pos, None)

    def __len__(self) -> int:
        return sum(bin(word).count("1") for word in self._words.values())

    def next_set(self, tick: int, direction: Direction) -> Optional[int]:
        """
        Nearest set tick strictly above (up) or strictly below (down) tick.

        tick does not need to be aligned. Returns None if no tick is set in
        that direction.
        """
        if direction == "up":
            compressed = tick // self.tick_spacing + 1
            word_pos, bit_pos = compressed >> 8, compressed & 0xFF

            # Mask off bits below the start position
            masked = self._words.get(word_pos, 0) & ~((1 << bit_pos) - 1)
            while not masked:
                word_pos += 1
                if word_pos > self._max_word:
                    return None
                masked = self._words.get(word_pos, 0)

            least_significant_bit = (masked & -masked).bit_length() - 1
            return (word_pos * WORD_BITS + least_significant_bit) * self.tick_spacing

        if direction == "down":
            # Ceil division: the first compressed tick strictly below tick
            compressed = -(-tick // self.tick_spacing) - 1
            word_pos, bit_pos = compressed >> 8, compressed & 0xFF

            # Mask off bits above the start position
            masked = self._words.get(word_pos, 0) & ((1 << (bit_pos + 1)) - 1)
            while not masked:
                word_pos -= 1
                if word_pos < self._min_word:
                    return None
                masked = self._words.get(word_pos, 0)

            most_significant_bit = masked.bit_length() - 1
            return (word_pos * WORD_BITS + most_significant_bit) * self.tick_spacing

        raise ValueError(f"Unknown direction: {direction}")


class TickRegistry:
    """
    Sparse tick -> liquidity ledger.

    Usage:
        registry = TickRegistry(tick_spacing=1)
        registry.add_liquidity(15, 1_000_000, net_sign=-1)
        registry.add_liquidity(10, 1_000_000, net_sign=+1)

        registry.find_next_initialized(10, "up")   # -> 15
        registry.get(12)                           # -> None
    """

    def __init__(self, tick_spacing: int = 1):
        if tick_spacing < 1:
            raise ValueError(f"tick_spacing must be >= 1, got {tick_spacing}")

        self.tick_spacing = tick_spacing
        self.max_liquidity_per_tick = max_liquidity_per_tick(tick_spacing)
        self._ticks: Dict[int, TickInfo] = {}
        self._bitmap = TickBitmap(tick_spacing)

    def _check_index(self, index: int) -> None:
        if not is_valid_tick(index, self.tick_spacing):
            raise InvalidRange(
                f"Tick {index} is out of bounds or not a multiple of spacing {self.tick_spacing}"
            )

    @staticmethod
    def _check_args(liquidity: int, net_sign: int) -> None:
        if liquidity <= 0:
            raise ValueError(f"liquidity must be positive, got {liquidity}")
        if net_sign not in (1, -1):
            raise ValueError(f"net_sign must be +1 or -1, got {net_sign}")

    def get(self, index: int) -> Optional[TickInfo]:
        """Mutable handle to an initialized tick, else None."""
        tick = self._ticks.get(index)
        if tick is None or not tick.initialized:
            return None
        return tick

    def is_initialized(self, index: int) -> bool:
        return self.get(index) is not None

    def liquidity_gross_at(self, index: int) -> int:
        tick = self.get(index)
        return tick.liquidity_gross if tick else 0

    def add_liquidity(self, index: int, liquidity: int, net_sign: int) -> TickInfo:
        """
        Add liquidity referencing a tick.

        Args:
            index: Tick index (aligned to spacing)
            liquidity: Amount added to liquidity_gross (> 0)
            net_sign: +1 for a lower boundary, -1 for an upper boundary

        Raises:
            InvalidRange: Bad tick index
            TickLiquidityError: liquidity_gross would exceed max_liquidity_per_tick
        """
        self._check_index(index)
        self._check_args(liquidity, net_sign)

        tick = self.get(index)
        gross_before = tick.liquidity_gross if tick else 0
        gross_after = gross_before + liquidity

        if gross_after > self.max_liquidity_per_tick:
            raise TickLiquidityError(
                f"Tick {index}: liquidity_gross {gross_after} exceeds max {self.max_liquidity_per_tick}"
            )

        if tick is None:
            tick = TickInfo(index=index, initialized=True)
            self._ticks[index] = tick
            self._bitmap.flip(index)
            logger.debug(f"Initialized tick {index}")

        tick.liquidity_gross = gross_after
        tick.liquidity_net += net_sign * liquidity
        return tick

    def remove_liquidity(self, index: int, liquidity: int, net_sign: int) -> Optional[TickInfo]:
        """
        Inverse of add_liquidity.

        Returns the tick, or None if it was deinitialized.

        Raises:
            TickLiquidityError: Tick not initialized or liquidity_gross < liquidity
        """
        self._check_index(index)
        self._check_args(liquidity, net_sign)

        tick = self.get(index)
        if tick is None:
            raise TickLiquidityError(f"Tick {index} is not initialized")
        if tick.liquidity_gross < liquidity:
            raise TickLiquidityError(
                f"Tick {index}: cannot remove {liquidity}, liquidity_gross is {tick.liquidity_gross}"
            )

        tick.liquidity_gross -= liquidity
        tick.liquidity_net -= net_sign * liquidity

        if tick.liquidity_gross == 0:
            tick.initialized = False
            del self._ticks[index]
            self._bitmap.flip(index)
            logger.debug(f"Deinitialized tick {index}")
            return None

        return tick

    def find_next_initialized(self, tick: int, direction: Direction) -> Optional[int]:
        """Nearest initialized tick strictly above/below tick, or None."""
        return self._bitmap.next_set(tick, direction)

    def ticks(self) -> Iterator[TickInfo]:
        """Initialized ticks in ascending order."""
        for index in sorted(self._ticks):
            yield self._ticks[index]

    def total_liquidity_net(self) -> int:
        return sum(tick.liquidity_net for tick in self._ticks.values())

    def __len__(self) -> int:
        return len(self._ticks)

    def __contains__(self, index: int) -> bool:
        return self.is_initialized(index)
