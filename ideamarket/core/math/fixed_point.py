"""
Fixed Point — Целочисленная арифметика с фиксированной точкой

Все денежные величины (cost, price, supply, collateral) хранятся как int
в базовых единицах со шкалой 10**18 (18 дробных десятичных знаков).

Python int не ограничен по ширине, поэтому промежуточные произведения
(порядка supply²) не переполняются до финального деления.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Никаких float в денежной арифметике
2. Направление округления всегда явное (floor или ceil)
3. bool не принимается как количество (bool — подкласс int)
"""

from decimal import Decimal, InvalidOperation
from typing import Final, Union

# =============================================================================
# ШКАЛЫ
# =============================================================================

# Количество дробных десятичных знаков
FIXED_POINT_DECIMALS: Final[int] = 18

# 10**18: единица в базовых единицах
FIXED_POINT_SCALE: Final[int] = 10**FIXED_POINT_DECIMALS


# =============================================================================
# КОНВЕРСИИ
# =============================================================================


def to_fixed(value: Union[int, str, Decimal]) -> int:
    """
    Конверсия человекочитаемой величины в базовые единицы.

    Дробная часть сверх 18 знаков отбрасывается (floor к нулю).

    Args:
        value: Величина (например, "1.5", 2, Decimal("0.1"))

    Returns:
        Величина в базовых единицах (например, "1.5" → 1_500_000_000_000_000_000)

    Raises:
        ValueError: Если значение не является конечным числом

    Examples:
        >>> to_fixed("1")
        1000000000000000000
        >>> to_fixed("0.1")
        100000000000000000
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"Unsupported fixed point input type: {type(value).__name__}")

    try:
        dec = Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Invalid fixed point value: {value!r}") from e

    if not dec.is_finite():
        raise ValueError(f"Fixed point value must be finite, got {value!r}")

    return int(dec * FIXED_POINT_SCALE)


def from_fixed(amount: int) -> Decimal:
    """
    Конверсия базовых единиц в Decimal (для отображения и логов).

    Examples:
        >>> from_fixed(1_500_000_000_000_000_000)
        Decimal('1.5')
    """
    validate_amount(amount, "amount")
    return (Decimal(amount) / Decimal(FIXED_POINT_SCALE)).normalize()


# =============================================================================
# ОКРУГЛЕНИЕ
# =============================================================================


def mul_div_floor(a: int, b: int, denominator: int) -> int:
    """
    floor(a * b / denominator) для неотрицательных a, b.

    Raises:
        ValueError: Если denominator <= 0 или аргументы отрицательные
    """
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")
    if a < 0 or b < 0:
        raise ValueError(f"mul_div_floor expects non-negative operands, got {a}, {b}")
    return (a * b) // denominator


def mul_div_ceil(a: int, b: int, denominator: int) -> int:
    """
    ceil(a * b / denominator) для неотрицательных a, b.

    Raises:
        ValueError: Если denominator <= 0 или аргументы отрицательные
    """
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")
    if a < 0 or b < 0:
        raise ValueError(f"mul_div_ceil expects non-negative operands, got {a}, {b}")
    return -((-(a * b)) // denominator)


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def is_valid_amount(value: object) -> bool:
    """Проверка, что value — int (не bool)."""
    return isinstance(value, int) and not isinstance(value, bool)


def validate_amount(value: int, name: str) -> None:
    """
    Валидация, что значение — неотрицательное целое количество.

    Raises:
        ValueError: Если value не int или отрицательное
    """
    if not is_valid_amount(value):
        raise ValueError(f"{name} must be an integer amount, got {value!r}")

    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")


def validate_positive_amount(value: int, name: str) -> None:
    """
    Валидация, что значение — строго положительное целое количество.

    Raises:
        ValueError: Если value не int или value <= 0
    """
    if not is_valid_amount(value):
        raise ValueError(f"{name} must be an integer amount, got {value!r}")

    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
