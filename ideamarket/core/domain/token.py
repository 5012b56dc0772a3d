"""
Token — Модель idea-токена

TokenInfo: запись токена в рынке (per-market id, имя, собственный ledger).
TokenIDPair: обратное отображение адреса ledger → (market_id, token_id).

Реестр append-only: токены никогда не удаляются.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class TokenInfo(BaseModel):
    """Запись токена."""

    exists: bool = Field(default=True, description="False для отсутствующего токена")
    id: int = Field(default=0, ge=0, description="Последовательный id в рынке, с 1")
    market_id: int = Field(default=0, ge=0, description="id рынка")
    name: str = Field(default="", description="Имя (например, 'example.com')")
    ledger: Optional[Any] = Field(
        default=None, description="FungibleLedger токена (supply меняет только Exchange)"
    )

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @classmethod
    def missing(cls) -> "TokenInfo":
        return cls(exists=False)

    @property
    def address(self) -> Optional[str]:
        """Адрес ledger токена."""
        return self.ledger.address if self.ledger is not None else None


class TokenIDPair(BaseModel):
    """Адрес токена → (market_id, token_id)."""

    exists: bool = False
    market_id: int = Field(default=0, ge=0)
    token_id: int = Field(default=0, ge=0)

    model_config = {"frozen": True}
