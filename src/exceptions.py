"""
Pool error hierarchy.

All pool failures are recoverable: callers catch PoolError (or a subclass)
and decide what to do. A swap that stops early is NOT an error, check
SwapResult.filled instead.
"""

from decimal import Decimal


class PoolError(Exception):
    """Base error for pool operations."""
    pass


class InvalidRange(PoolError):
    """Tick outside bounds, off spacing, lower >= upper or liquidity <= 0."""
    pass


class InsufficientBalance(PoolError):
    """Account balance is lower than the amount an operation needs."""

    def __init__(self, token: str, required: Decimal, available: Decimal):
        self.token = token
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient balance of token {token}: required {required}, available {available}"
        )


class NoLiquidity(PoolError):
    """Swap attempted at a tick with zero active liquidity."""

    def __init__(self, tick: int):
        self.tick = tick
        super().__init__(f"No liquidity at tick {tick}")


class TickLiquidityError(PoolError):
    """liquidity_gross would go negative or exceed the per-tick cap."""
    pass


class PositionClosedError(PoolError):
    """Position was already consumed by close_position."""
    pass
