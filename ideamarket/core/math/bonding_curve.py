"""
BondingCurve — Ценообразование по кусочно-линейной кривой

Модуль вычисляет стоимость покупки и цену продажи idea-токенов:
- интеграл кривой от 0 до supply в замкнутой форме
- raw cost/price как разность интегралов
- trading fee и platform fee (floor, всегда)

Цена на supply s (ступенчатая, шаг каждые t = tokens_per_interval единиц):
    price(s) = base_cost + price_rise * floor(s / t)

ФОРМУЛЫ (порядок умножений и делений фиксирован, иначе меняется округление):
    n = s // t
    completed_intervals_cost(n) = n*t*(b - r) + r*t*(n*(n+1) // 2)
    cost_from_zero_supply(s)    = (completed_intervals_cost(n) + (s - n*t)*(b + n*r)) // 10**18

    raw_cost_for_buying(s, a)   = cost_from_zero_supply(s + a) - cost_from_zero_supply(s)
    raw_price_for_selling(s, a) = cost_from_zero_supply(s) - cost_from_zero_supply(s - a)

    fee(raw, rate) = raw * rate // FEE_RATE_SCALE

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Fee округляется вниз: платформа никогда не берёт больше пропорциональной доли
2. cost = raw + trading_fee + platform_fee
3. price = raw - trading_fee - platform_fee
4. Покупка и немедленная продажа того же amount возвращают supply к исходному,
   разница cost - price равна сумме комиссий обеих сделок
"""

from dataclasses import dataclass
from typing import Final

from ideamarket.core.math.fixed_point import (
    FIXED_POINT_SCALE,
    mul_div_floor,
    validate_amount,
    validate_positive_amount,
)

# =============================================================================
# FEE ПАРАМЕТРЫ
# =============================================================================

# Шкала fee rate (basis points): 100 = 1%
FEE_RATE_SCALE: Final[int] = 10_000


# =============================================================================
# ТИПЫ
# =============================================================================


@dataclass(frozen=True)
class CurveParameters:
    """Параметры кривой рынка (fixed point, 18 знаков)."""

    base_cost: int
    price_rise: int
    tokens_per_interval: int

    def __post_init__(self) -> None:
        validate_positive_amount(self.base_cost, "base_cost")
        validate_positive_amount(self.price_rise, "price_rise")
        validate_positive_amount(self.tokens_per_interval, "tokens_per_interval")


@dataclass(frozen=True)
class CostAndPriceAmounts:
    """
    Разбивка суммы сделки.

    total = raw + fees (покупка) или raw - fees (продажа).
    """

    raw: int
    trading_fee: int
    platform_fee: int
    total: int

    @property
    def total_fees(self) -> int:
        return self.trading_fee + self.platform_fee


# =============================================================================
# ИНТЕГРАЛ КРИВОЙ
# =============================================================================


def completed_intervals_cost(curve: CurveParameters, n: int) -> int:
    """
    Стоимость n полностью пройденных интервалов (без деления на шкалу).

    Args:
        curve: Параметры кривой
        n: Количество завершённых интервалов

    Returns:
        n*t*(b - r) + r*t*(n*(n+1) // 2), масштаб 10**36
    """
    validate_amount(n, "n")
    b = curve.base_cost
    r = curve.price_rise
    t = curve.tokens_per_interval
    return n * t * (b - r) + r * t * (n * (n + 1) // 2)


def cost_from_zero_supply(curve: CurveParameters, supply: int) -> int:
    """
    Интеграл кривой от 0 до supply.

    Args:
        curve: Параметры кривой
        supply: Количество токенов (базовые единицы)

    Returns:
        Стоимость в базовых единицах коллатерала
    """
    validate_amount(supply, "supply")
    t = curve.tokens_per_interval
    n = supply // t
    remainder_cost = (supply - n * t) * (curve.base_cost + n * curve.price_rise)
    return (completed_intervals_cost(curve, n) + remainder_cost) // FIXED_POINT_SCALE


def raw_cost_for_buying(curve: CurveParameters, supply: int, amount: int) -> int:
    """Стоимость покупки amount токенов при текущем supply (без fee)."""
    validate_amount(supply, "supply")
    validate_amount(amount, "amount")
    return cost_from_zero_supply(curve, supply + amount) - cost_from_zero_supply(
        curve, supply
    )


def raw_price_for_selling(curve: CurveParameters, supply: int, amount: int) -> int:
    """
    Цена продажи amount токенов при текущем supply (без fee).

    Raises:
        ValueError: Если amount > supply
    """
    validate_amount(supply, "supply")
    validate_amount(amount, "amount")
    if amount > supply:
        raise ValueError(f"amount {amount} exceeds supply {supply}")
    return cost_from_zero_supply(curve, supply) - cost_from_zero_supply(
        curve, supply - amount
    )


# =============================================================================
# FEES
# =============================================================================


def fee_amount(raw: int, rate: int, scale: int = FEE_RATE_SCALE) -> int:
    """
    Комиссия с raw суммы: floor(raw * rate / scale).

    Args:
        raw: Сумма до комиссии
        rate: Ставка (basis points при scale=10_000)
        scale: Шкала ставки

    Returns:
        Комиссия (округление вниз)
    """
    validate_amount(rate, "rate")
    if rate > scale:
        raise ValueError(f"rate {rate} exceeds scale {scale}")
    return mul_div_floor(raw, rate, scale)


def costs_for_buying(
    curve: CurveParameters,
    supply: int,
    amount: int,
    trading_fee_rate: int,
    platform_fee_rate: int,
) -> CostAndPriceAmounts:
    """
    Полная стоимость покупки: raw + trading_fee + platform_fee.

    Returns:
        CostAndPriceAmounts с total = стоимость для покупателя
    """
    raw = raw_cost_for_buying(curve, supply, amount)
    trading_fee = fee_amount(raw, trading_fee_rate)
    platform_fee = fee_amount(raw, platform_fee_rate)
    return CostAndPriceAmounts(
        raw=raw,
        trading_fee=trading_fee,
        platform_fee=platform_fee,
        total=raw + trading_fee + platform_fee,
    )


def prices_for_selling(
    curve: CurveParameters,
    supply: int,
    amount: int,
    trading_fee_rate: int,
    platform_fee_rate: int,
) -> CostAndPriceAmounts:
    """
    Выручка от продажи: raw - trading_fee - platform_fee.

    Raises:
        ValueError: Если amount > supply или сумма ставок > шкалы
    """
    if trading_fee_rate + platform_fee_rate > FEE_RATE_SCALE:
        raise ValueError("combined fee rate exceeds fee scale")

    raw = raw_price_for_selling(curve, supply, amount)
    trading_fee = fee_amount(raw, trading_fee_rate)
    platform_fee = fee_amount(raw, platform_fee_rate)
    return CostAndPriceAmounts(
        raw=raw,
        trading_fee=trading_fee,
        platform_fee=platform_fee,
        total=raw - trading_fee - platform_fee,
    )
