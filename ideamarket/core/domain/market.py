"""
Market — Модель рынка idea-токенов

Immutable Pydantic модель записи рынка в реестре.
Изменяемы только fee rates: реестр заменяет запись новым экземпляром
(model_copy(update=...)), сама запись не мутирует.

Запись с exists=False возвращается lookup-методами реестра для
отсутствующего рынка, чтобы отличать "не найдено" от нулевой записи.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ideamarket.core.math.bonding_curve import CurveParameters


# =============================================================================
# MARKET MODEL
# =============================================================================


class Market(BaseModel):
    """
    Запись рынка.

    Кривая: base_cost, price_rise, tokens_per_interval (fixed point, 18 знаков).
    Комиссии: trading_fee_rate, platform_fee_rate (basis points, шкала 10_000).
    """

    exists: bool = Field(default=True, description="False для отсутствующего рынка")
    id: int = Field(default=0, ge=0, description="Последовательный id, начиная с 1")
    name: str = Field(default="", description="Уникальное имя рынка")
    name_verifier: Optional[Any] = Field(
        default=None, description="NameVerifier, выбранный при создании рынка"
    )

    # Кривая
    base_cost: int = Field(default=0, ge=0, description="Цена первого интервала")
    price_rise: int = Field(default=0, ge=0, description="Прирост цены за интервал")
    tokens_per_interval: int = Field(
        default=0, ge=0, description="Размер интервала в базовых единицах токена"
    )

    # Комиссии
    trading_fee_rate: int = Field(default=0, ge=0, description="Trading fee (bps)")
    platform_fee_rate: int = Field(default=0, ge=0, description="Platform fee (bps)")

    num_tokens: int = Field(default=0, ge=0, description="Количество токенов рынка")

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @classmethod
    def missing(cls) -> "Market":
        """Нулевая запись с exists=False."""
        return cls(exists=False)

    def curve(self) -> CurveParameters:
        """
        Параметры кривой рынка.

        Raises:
            ValueError: Для отсутствующего рынка (нулевые параметры)
        """
        return CurveParameters(
            base_cost=self.base_cost,
            price_rise=self.price_rise,
            tokens_per_interval=self.tokens_per_interval,
        )


# =============================================================================
# MARKET DEFINITION
# =============================================================================


class MarketDefinition(BaseModel):
    """
    Параметры для add_market, полученные из JSON (контракт market_definition).

    Суммы приходят как int или строка десятичных цифр в базовых единицах.
    """

    name: str = Field(..., min_length=1)
    base_cost: int = Field(..., gt=0)
    price_rise: int = Field(..., gt=0)
    tokens_per_interval: int = Field(..., gt=0)
    trading_fee_rate: int = Field(..., ge=0)
    platform_fee_rate: int = Field(..., ge=0)

    model_config = {"frozen": True}

    @field_validator(
        "base_cost",
        "price_rise",
        "tokens_per_interval",
        "trading_fee_rate",
        "platform_fee_rate",
        mode="before",
    )
    @classmethod
    def parse_base_units(cls, v):
        if isinstance(v, str):
            if not v.isdigit():
                raise ValueError(f"value must be a decimal digit string, got {v!r}")
            return int(v)
        return v
