"""
Contract Validation Module

Модуль для валидации JSON контрактов ideamarket.
"""

from .validators import (
    ContractValidator,
    MarketDefinitionValidator,
    SchemaLoader,
    TradeRequestValidator,
    parse_market_definition,
    parse_trade_request,
    validate_market_definition,
    validate_trade_request,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "MarketDefinitionValidator",
    "TradeRequestValidator",
    # Functions
    "validate_market_definition",
    "validate_trade_request",
    "parse_market_definition",
    "parse_trade_request",
]
