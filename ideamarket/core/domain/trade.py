"""
Trade — Модели торгового запроса и результата сделки

TradeRequest: запрос на покупку/продажу (валидируется JSON Schema контрактом
trade_request перед созданием модели).
TradeReceipt: результат исполненной сделки с разбивкой комиссий.

Immutable Pydantic модели.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================


class TradeSide(str, Enum):
    """Сторона сделки"""

    BUY = "buy"
    SELL = "sell"


# =============================================================================
# TRADE REQUEST
# =============================================================================


class TradeRequest(BaseModel):
    """
    Запрос на сделку.

    limit — maxCost для покупки и minPrice для продажи.
    """

    side: TradeSide = Field(..., description="buy/sell")
    token: str = Field(..., min_length=1, description="Адрес ledger токена")
    amount: int = Field(..., gt=0, description="Количество токенов (базовые единицы)")
    limit: int = Field(..., ge=0, description="maxCost (buy) или minPrice (sell)")
    recipient: Optional[str] = Field(
        default=None, description="Получатель (по умолчанию — вызывающий)"
    )

    model_config = {"frozen": True}

    @field_validator("amount", "limit", mode="before")
    @classmethod
    def parse_base_units(cls, v):
        """Суммы приходят как int или строка десятичных цифр."""
        if isinstance(v, str):
            if not v.isdigit():
                raise ValueError(f"amount must be a decimal digit string, got {v!r}")
            return int(v)
        return v


# =============================================================================
# TRADE RECEIPT
# =============================================================================


class TradeReceipt(BaseModel):
    """
    Результат исполненной сделки.

    total — сколько заплатил покупатель (buy) или получил продавец (sell).
    """

    side: TradeSide
    token: str = Field(..., min_length=1)
    market_id: int = Field(..., gt=0)
    token_id: int = Field(..., gt=0)
    trader: str = Field(..., min_length=1, description="Вызывающий аккаунт")
    recipient: str = Field(..., min_length=1)
    amount: int = Field(..., gt=0)
    raw: int = Field(..., ge=0, description="Интеграл кривой до комиссий")
    trading_fee: int = Field(..., ge=0)
    platform_fee: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    supply_after: int = Field(..., ge=0, description="Supply токена после сделки")

    model_config = {"frozen": True}

    def total_fees(self) -> int:
        return self.trading_fee + self.platform_fee
