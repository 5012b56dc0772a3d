"""
Core math modules для ideamarket

Целочисленная fixed-point арифметика и интеграл кривой ценообразования.
"""

# Fixed Point
from ideamarket.core.math.fixed_point import (
    FIXED_POINT_DECIMALS,
    FIXED_POINT_SCALE,
    from_fixed,
    is_valid_amount,
    mul_div_ceil,
    mul_div_floor,
    to_fixed,
    validate_amount,
    validate_positive_amount,
)

# Bonding Curve
from ideamarket.core.math.bonding_curve import (
    FEE_RATE_SCALE,
    CostAndPriceAmounts,
    CurveParameters,
    completed_intervals_cost,
    cost_from_zero_supply,
    costs_for_buying,
    fee_amount,
    prices_for_selling,
    raw_cost_for_buying,
    raw_price_for_selling,
)

__all__ = [
    # Fixed Point: Constants
    "FIXED_POINT_DECIMALS",
    "FIXED_POINT_SCALE",
    # Fixed Point: Functions
    "from_fixed",
    "is_valid_amount",
    "mul_div_ceil",
    "mul_div_floor",
    "to_fixed",
    "validate_amount",
    "validate_positive_amount",
    # Bonding Curve: Constants
    "FEE_RATE_SCALE",
    # Bonding Curve: Types
    "CostAndPriceAmounts",
    "CurveParameters",
    # Bonding Curve: Functions
    "completed_intervals_cost",
    "cost_from_zero_supply",
    "costs_for_buying",
    "fee_amount",
    "prices_for_selling",
    "raw_cost_for_buying",
    "raw_price_for_selling",
]
