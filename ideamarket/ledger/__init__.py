"""
Ledgers — внешние коллабораторы: fungible-токены и пул кредитования.

Интерфейсы (Protocol) плюс in-memory реализации.
"""

from .fungible import FungibleLedger, InMemoryLedger
from .lending import LendingAdapter, SimulatedLendingPool

__all__ = [
    "FungibleLedger",
    "InMemoryLedger",
    "LendingAdapter",
    "SimulatedLendingPool",
]
