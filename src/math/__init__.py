from .ticks import (
    tick_to_price,
    tick_to_sqrt_price,
    align_tick_to_spacing,
    is_valid_tick,
    max_liquidity_per_tick,
    MIN_TICK,
    MAX_TICK,
)
from .liquidity import (
    calculate_amounts,
    calculate_amounts_in_range,
    calculate_withdrawal_at_price,
    compute_step_a_in,
    compute_step_b_in,
    to_decimal,
    DepositFormula,
    SegmentStep,
)
