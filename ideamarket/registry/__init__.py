"""Registry — рынки и idea-токены."""

from .market_registry import MarketRegistry

__all__ = [
    "MarketRegistry",
]
