"""
Concentrated Liquidity Pool

Один пул = текущий тик / sqrt price + реестр тиков.
Операции:
- open_position / close_position: депозит и вывод ликвидности
- swap_a_for_b: цена растёт, тики пересекаются вверх
- swap_b_for_a: зеркальный алгоритм, цена падает

Свап идёт сегментами с постоянной активной ликвидностью. Если следующий
тик не инициализирован, свап останавливается (частичное исполнение,
не ошибка) - проверяйте SwapResult.filled.

Pool is not thread-safe: callers serialize operations on one instance.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Literal, Tuple

from .account import Account
from .exceptions import InvalidRange, NoLiquidity, PositionClosedError, TickLiquidityError
from .math.liquidity import (
    ZERO,
    DepositFormula,
    calculate_amounts,
    calculate_amounts_in_range,
    calculate_withdrawal_at_price,
    check_deposit_formula,
    compute_step_a_in,
    compute_step_b_in,
    to_decimal,
)
from .math.ticks import MAX_TICK, MIN_TICK, align_tick_to_spacing, check_tick, tick_to_sqrt_price
from .position import Position
from .tick_registry import TickRegistry
from .utils import normalize_token_id

logger = logging.getLogger(__name__)


@dataclass
class SwapResult:
    """Результат свапа."""
    token_in: Literal["A", "B"]
    amount_requested: Decimal     # Сколько хотели обменять
    amount_in: Decimal            # Сколько реально списано
    amount_out: Decimal           # Сколько начислено в выходном токене
    ticks_crossed: int            # Сколько границ тиков пересечено
    tick_after: int
    sqrt_price_after: Decimal

    @property
    def amount_remaining(self) -> Decimal:
        return self.amount_requested - self.amount_in

    @property
    def filled(self) -> bool:
        """False if the swap stopped early at an uninitialized tick."""
        return self.amount_remaining <= 0


class Pool:
    """
    Single CLMM pool.

    Usage:
        pool = Pool(token_a, token_b, current_tick=10)
        account = Account.create(balance_a=1000, balance_b=1000)

        position = pool.open_position(account, 10, 15, 1_000_000)
        result = pool.swap_a_for_b(account, 10)
        pool.close_position(position, account)
    """

    def __init__(
        self,
        token_a: str,
        token_b: str,
        current_tick: int = 0,
        tick_spacing: int = 1,
        deposit_formula: DepositFormula = "in_range"
    ):
        self.token_a = normalize_token_id(token_a)
        self.token_b = normalize_token_id(token_b)
        if self.token_a == self.token_b:
            raise ValueError(f"Pool tokens must differ, got {self.token_a} twice")

        check_tick(current_tick)
        self.deposit_formula = check_deposit_formula(deposit_formula)
        self.registry = TickRegistry(tick_spacing)

        self.current_tick = current_tick
        self.current_sqrt_price = tick_to_sqrt_price(current_tick)

    @classmethod
    def from_config(cls, token_a: str, token_b: str, config) -> 'Pool':
        """Build a pool from a PoolConfig-like object."""
        return cls(
            token_a,
            token_b,
            current_tick=config.initial_tick,
            tick_spacing=config.tick_spacing,
            deposit_formula=config.deposit_formula,
        )

    @property
    def tick_spacing(self) -> int:
        return self.registry.tick_spacing

    @property
    def active_tick(self) -> int:
        """Spacing-aligned tick whose liquidity covers the current price."""
        return align_tick_to_spacing(self.current_tick, self.tick_spacing)

    @property
    def liquidity(self) -> int:
        """Active liquidity at the current price."""
        return self.registry.liquidity_gross_at(self.active_tick)

    def __repr__(self) -> str:
        return (
            f"Pool(token_a={self.token_a}, token_b={self.token_b}, "
            f"current_tick={self.current_tick}, current_sqrt_price={self.current_sqrt_price}, "
            f"tick_spacing={self.tick_spacing}, initialized_ticks={len(self.registry)})"
        )

    # ===== Positions =====

    def _check_range(self, lower_tick: int, upper_tick: int, liquidity: int) -> None:
        if isinstance(liquidity, bool) or not isinstance(liquidity, int) or liquidity <= 0:
            raise InvalidRange(f"Liquidity must be a positive integer, got {liquidity!r}")
        if lower_tick < MIN_TICK:
            raise InvalidRange(f"lower_tick must be {MIN_TICK} or more, got {lower_tick}")
        if upper_tick > MAX_TICK:
            raise InvalidRange(f"upper_tick must be {MAX_TICK} or less, got {upper_tick}")
        if lower_tick >= upper_tick:
            raise InvalidRange(f"lower_tick must be < upper_tick, got [{lower_tick}, {upper_tick}]")
        if lower_tick % self.tick_spacing or upper_tick % self.tick_spacing:
            raise InvalidRange(
                f"Ticks [{lower_tick}, {upper_tick}] must be multiples of spacing {self.tick_spacing}"
            )

    def deposit_amounts(self, lower_tick: int, upper_tick: int, liquidity: int) -> Tuple[Decimal, Decimal]:
        """
        Суммы депозита для позиции при текущей цене.

        "in_range": формула для цены внутри диапазона, применяется всегда
                    (вне диапазона одна сумма отрицательная = начисление).
        "three_region": стандартные три региона, обе суммы >= 0.
        """
        self._check_range(lower_tick, upper_tick, liquidity)
        sqrt_price_lower = tick_to_sqrt_price(lower_tick)
        sqrt_price_upper = tick_to_sqrt_price(upper_tick)

        if self.deposit_formula == "three_region":
            return calculate_amounts(
                self.current_sqrt_price, sqrt_price_lower, sqrt_price_upper, liquidity
            )
        return calculate_amounts_in_range(
            self.current_sqrt_price, sqrt_price_lower, sqrt_price_upper, liquidity
        )

    def open_position(
        self,
        account: Account,
        lower_tick: int,
        upper_tick: int,
        liquidity: int
    ) -> Position:
        """
        Открыть позицию [lower_tick, upper_tick] с ликвидностью liquidity.

        Raises:
            InvalidRange: Плохой диапазон или liquidity <= 0
            InsufficientBalance: Не хватает баланса на депозит
            TickLiquidityError: Превышен лимит ликвидности на тике

        On failure neither the account nor the ticks change.
        """
        amount_a, amount_b = self.deposit_amounts(lower_tick, upper_tick, liquidity)
        account.ensure_balance(amount_a, amount_b)

        self.registry.add_liquidity(upper_tick, liquidity, net_sign=-1)
        try:
            self.registry.add_liquidity(lower_tick, liquidity, net_sign=+1)
        except TickLiquidityError:
            self.registry.remove_liquidity(upper_tick, liquidity, net_sign=-1)
            raise

        account.apply(-amount_a, -amount_b)

        position = Position(
            owner=account.address,
            lower_tick=lower_tick,
            upper_tick=upper_tick,
            liquidity=liquidity,
            amount_a=amount_a,
            amount_b=amount_b,
        )
        logger.info(
            f"Opened position [{lower_tick}, {upper_tick}] L={liquidity} for {account.address}: "
            f"deposit A={amount_a:.6f}, B={amount_b:.6f}"
        )
        return position

    def withdrawal_amounts(self, position: Position) -> Tuple[Decimal, Decimal]:
        """
        Суммы вывода позиции при текущем состоянии пула.

        "in_range": одна целевая цена
            - current_tick < lower: цена нижнего тика
            - current_tick > upper: цена верхнего тика
            - иначе: живая current_sqrt_price
            amount_a = L / sp_target, amount_b = L * sp_target
        "three_region": зеркало депозита по трём регионам.
        """
        sqrt_price_lower = tick_to_sqrt_price(position.lower_tick)
        sqrt_price_upper = tick_to_sqrt_price(position.upper_tick)

        if self.deposit_formula == "three_region":
            return calculate_amounts(
                self.current_sqrt_price, sqrt_price_lower, sqrt_price_upper, position.liquidity
            )

        if position.contains_tick(self.current_tick):
            target_sqrt_price = self.current_sqrt_price
        elif self.current_tick < position.lower_tick:
            target_sqrt_price = sqrt_price_lower
        else:
            target_sqrt_price = sqrt_price_upper

        return calculate_withdrawal_at_price(target_sqrt_price, position.liquidity)

    def close_position(self, position: Position, account: Account) -> Tuple[Decimal, Decimal]:
        """
        Закрыть позицию целиком и вернуть токены на аккаунт.

        Returns:
            (amount_a, amount_b) начисленные на аккаунт

        Raises:
            PositionClosedError: Позиция уже закрыта
            ValueError: Аккаунт не владелец позиции
            TickLiquidityError: Позиция не принадлежит этому пулу
        """
        if position.closed:
            raise PositionClosedError(
                f"Position [{position.lower_tick}, {position.upper_tick}] is already closed"
            )
        if position.owner != account.address:
            raise ValueError(f"Position belongs to {position.owner}, not {account.address}")

        for index in position.tick_range:
            if self.registry.liquidity_gross_at(index) < position.liquidity:
                raise TickLiquidityError(
                    f"Tick {index} does not hold liquidity {position.liquidity} of this position"
                )

        amount_a, amount_b = self.withdrawal_amounts(position)

        self.registry.remove_liquidity(position.upper_tick, position.liquidity, net_sign=-1)
        self.registry.remove_liquidity(position.lower_tick, position.liquidity, net_sign=+1)
        account.credit(amount_a, amount_b)
        position.closed = True

        logger.info(
            f"Closed position [{position.lower_tick}, {position.upper_tick}] L={position.liquidity} "
            f"for {account.address}: withdraw A={amount_a:.6f}, B={amount_b:.6f}"
        )
        return amount_a, amount_b

    # ===== Swaps =====

    def _prepare_swap(self, account: Account, amount_in, token_in: str) -> Decimal:
        amount = to_decimal(amount_in)
        if amount < 0:
            raise ValueError(f"Swap amount must be non-negative, got {amount}")
        if amount == 0:
            return amount

        if token_in == "A":
            account.ensure_balance(amount_a=amount)
        else:
            account.ensure_balance(amount_b=amount)

        if self.liquidity == 0:
            raise NoLiquidity(self.current_tick)
        return amount

    def _empty_result(self, token_in: Literal["A", "B"]) -> SwapResult:
        return SwapResult(
            token_in=token_in,
            amount_requested=ZERO,
            amount_in=ZERO,
            amount_out=ZERO,
            ticks_crossed=0,
            tick_after=self.current_tick,
            sqrt_price_after=self.current_sqrt_price,
        )

    def _log_swap(self, result: SwapResult) -> None:
        token_out = "B" if result.token_in == "A" else "A"
        logger.info(
            f"Swap {result.token_in}->{token_out}: in={result.amount_in:.6f}, "
            f"out={result.amount_out:.6f}, ticks crossed={result.ticks_crossed}, "
            f"tick={result.tick_after}"
        )
        if not result.filled:
            logger.warning(
                f"Partial fill: {result.amount_remaining:.6f} of {result.amount_requested} "
                f"token {result.token_in} not swapped, no liquidity past tick {result.tick_after}"
            )

    def swap_a_for_b(self, account: Account, amount_a_in) -> SwapResult:
        """
        Обмен token A на token B. Цена растёт.

        Сегмент с ликвидностью L:
            вход A  = L * (1/sp_old - 1/sp_new)
            выход B = L * (sp_new - sp_old)

        Если вход доходит до границы следующего тика, пересекаем его.
        Инициализированный тик - берём его liquidity_gross и продолжаем,
        неинициализированный - останавливаемся с остатком входа.

        Raises:
            ValueError: amount_a_in < 0
            InsufficientBalance: На аккаунте меньше amount_a_in
            NoLiquidity: На текущем тике нет ликвидности
        """
        amount = self._prepare_swap(account, amount_a_in, "A")
        if amount == 0:
            return self._empty_result("A")

        spacing = self.tick_spacing
        current_tick = self.current_tick
        sqrt_price = self.current_sqrt_price
        liquidity = self.liquidity
        remaining = amount
        amount_out = ZERO
        ticks_crossed = 0

        while remaining > 0:
            active_tick = align_tick_to_spacing(current_tick, spacing)
            next_tick = active_tick + spacing
            if next_tick > MAX_TICK:
                break

            step = compute_step_a_in(sqrt_price, tick_to_sqrt_price(next_tick), liquidity, remaining)
            remaining -= step.amount_in
            amount_out += step.amount_out
            sqrt_price = step.sqrt_price_next
            logger.debug(
                f"Segment at tick {active_tick}: L={liquidity}, in={step.amount_in}, out={step.amount_out}"
            )

            if not step.reached_boundary:
                break

            current_tick = next_tick
            ticks_crossed += 1
            if self.registry.find_next_initialized(active_tick, "up") != next_tick:
                break
            liquidity = self.registry.get(next_tick).liquidity_gross

        result = SwapResult(
            token_in="A",
            amount_requested=amount,
            amount_in=amount - remaining,
            amount_out=amount_out,
            ticks_crossed=ticks_crossed,
            tick_after=current_tick,
            sqrt_price_after=sqrt_price,
        )

        self.current_tick = current_tick
        self.current_sqrt_price = sqrt_price
        account.apply(-result.amount_in, result.amount_out)
        self._log_swap(result)
        return result

    def swap_b_for_a(self, account: Account, amount_b_in) -> SwapResult:
        """
        Обмен token B на token A. Цена падает (зеркало swap_a_for_b).

        Сегмент с ликвидностью L:
            вход B  = L * (sp_old - sp_new)
            выход A = L * (1/sp_new - 1/sp_old)

        Граница сегмента - цена активного тика. Дойдя до неё, пересекаем
        вниз в тик active - spacing, если он инициализирован; иначе
        останавливаемся на границе.

        Raises:
            ValueError: amount_b_in < 0
            InsufficientBalance: На аккаунте меньше amount_b_in
            NoLiquidity: На текущем тике нет ликвидности
        """
        amount = self._prepare_swap(account, amount_b_in, "B")
        if amount == 0:
            return self._empty_result("B")

        spacing = self.tick_spacing
        current_tick = self.current_tick
        sqrt_price = self.current_sqrt_price
        liquidity = self.liquidity
        remaining = amount
        amount_out = ZERO
        ticks_crossed = 0

        while remaining > 0:
            active_tick = align_tick_to_spacing(current_tick, spacing)

            step = compute_step_b_in(sqrt_price, tick_to_sqrt_price(active_tick), liquidity, remaining)
            remaining -= step.amount_in
            amount_out += step.amount_out
            sqrt_price = step.sqrt_price_next
            logger.debug(
                f"Segment at tick {active_tick}: L={liquidity}, in={step.amount_in}, out={step.amount_out}"
            )

            if not step.reached_boundary:
                break

            current_tick = active_tick
            next_tick = active_tick - spacing
            if next_tick < MIN_TICK:
                break
            if self.registry.find_next_initialized(active_tick, "down") != next_tick:
                break

            current_tick = next_tick
            ticks_crossed += 1
            liquidity = self.registry.get(next_tick).liquidity_gross

        result = SwapResult(
            token_in="B",
            amount_requested=amount,
            amount_in=amount - remaining,
            amount_out=amount_out,
            ticks_crossed=ticks_crossed,
            tick_after=current_tick,
            sqrt_price_after=sqrt_price,
        )

        self.current_tick = current_tick
        self.current_sqrt_price = sqrt_price
        account.apply(result.amount_out, -result.amount_in)
        self._log_swap(result)
        return result
