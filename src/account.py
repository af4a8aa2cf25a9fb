"""
Account - two-token balance ledger mutated by pool operations.

Balances are Decimal and never negative: an operation that would push
either balance below zero raises InsufficientBalance and changes nothing.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from .exceptions import InsufficientBalance
from .math.liquidity import ZERO, to_decimal
from .utils import random_address

logger = logging.getLogger(__name__)


@dataclass
class Account:
    """Balance holder for token A and token B."""
    address: str
    balance_a: Decimal = field(default=ZERO)
    balance_b: Decimal = field(default=ZERO)

    def __post_init__(self):
        self.balance_a = to_decimal(self.balance_a)
        self.balance_b = to_decimal(self.balance_b)
        if self.balance_a < 0 or self.balance_b < 0:
            raise ValueError("Account balances must be non-negative")

    @classmethod
    def create(
        cls,
        balance_a: float | int | str | Decimal = 0,
        balance_b: float | int | str | Decimal = 0,
        address: Optional[str] = None
    ) -> 'Account':
        """New account with a random address unless one is given."""
        return cls(
            address=address or random_address(),
            balance_a=to_decimal(balance_a),
            balance_b=to_decimal(balance_b),
        )

    def ensure_balance(self, amount_a: Decimal = ZERO, amount_b: Decimal = ZERO) -> None:
        """Raise InsufficientBalance if a debit of these amounts would fail."""
        if amount_a > self.balance_a:
            raise InsufficientBalance("A", amount_a, self.balance_a)
        if amount_b > self.balance_b:
            raise InsufficientBalance("B", amount_b, self.balance_b)

    def apply(self, delta_a: Decimal = ZERO, delta_b: Decimal = ZERO) -> None:
        """
        Add signed deltas to both balances atomically.

        Raises:
            InsufficientBalance: If either balance would become negative
        """
        self.ensure_balance(-delta_a, -delta_b)
        self.balance_a += delta_a
        self.balance_b += delta_b

    def debit(self, amount_a: Decimal = ZERO, amount_b: Decimal = ZERO) -> None:
        self.apply(-amount_a, -amount_b)

    def credit(self, amount_a: Decimal = ZERO, amount_b: Decimal = ZERO) -> None:
        if amount_a < 0 or amount_b < 0:
            raise ValueError("Credit amounts must be non-negative")
        self.apply(amount_a, amount_b)
