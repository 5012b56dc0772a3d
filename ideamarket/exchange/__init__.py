"""Exchange — покупка и продажа idea-токенов по кривой."""

from .idea_token_exchange import IdeaTokenExchange

__all__ = [
    "IdeaTokenExchange",
]
