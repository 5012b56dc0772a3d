"""
Domain models and value objects.

Contains fundamental domain entities like Market, TokenInfo, TradeRequest.
"""

from ideamarket.core.domain.market import Market, MarketDefinition
from ideamarket.core.domain.token import TokenIDPair, TokenInfo
from ideamarket.core.domain.trade import TradeReceipt, TradeRequest, TradeSide

__all__ = [
    # Market model
    "Market",
    "MarketDefinition",
    # Token models
    "TokenInfo",
    "TokenIDPair",
    # Trade models
    "TradeRequest",
    "TradeReceipt",
    "TradeSide",
]
