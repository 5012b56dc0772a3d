"""Reserve — коллатерал в пуле кредитования, principal и donated."""

from .interest_manager import InterestManager

__all__ = [
    "InterestManager",
]
