"""
Сборка системы: MarketRegistry + InterestManager + IdeaTokenExchange

create_idea_market() связывает компоненты в одном месте:
- настраивает логирование по Settings.log_level
- создаёт компоненты с общими Settings
- выполняет initialize() в порядке reserve → registry → exchange
  (владелец резерва и минтер токенов — адрес Exchange)
"""

from dataclasses import dataclass
from typing import Optional

from ideamarket.core.config import Settings, get_settings
from ideamarket.core.logging import get_logger, setup_logging
from ideamarket.exchange.idea_token_exchange import IdeaTokenExchange
from ideamarket.ledger.fungible import FungibleLedger
from ideamarket.ledger.lending import LendingAdapter
from ideamarket.registry.market_registry import MarketRegistry
from ideamarket.reserve.interest_manager import InterestManager

logger = get_logger(__name__)


@dataclass(frozen=True)
class IdeaMarket:
    """Инициализированные компоненты системы."""

    settings: Settings
    registry: MarketRegistry
    reserve: InterestManager
    exchange: IdeaTokenExchange


def create_idea_market(
    admin: str,
    trading_fee_account: str,
    collateral: FungibleLedger,
    lending_adapter: LendingAdapter,
    reward_token: Optional[FungibleLedger] = None,
    reward_recipient: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> IdeaMarket:
    """
    Создание и инициализация всех компонентов.

    Args:
        admin: владелец registry и exchange
        trading_fee_account: получатель trading fee
        collateral: ledger коллатерала
        lending_adapter: пул кредитования резерва
        reward_token: reward-актив пула (optional)
        reward_recipient: фиксированный получатель reward
        settings: настройки (по умолчанию get_settings())

    Returns:
        IdeaMarket с готовыми к работе компонентами
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    reserve = InterestManager()
    registry = MarketRegistry(settings=settings)
    exchange = IdeaTokenExchange()

    reserve.initialize(
        exchange.address, collateral, lending_adapter, reward_token, reward_recipient
    )
    registry.initialize(admin, exchange.address)
    exchange.initialize(admin, trading_fee_account, registry, reserve, collateral)

    logger.info(
        "Idea market assembled: admin=%s collateral=%s pool=%s max_fee_rate=%d",
        admin,
        collateral.address,
        lending_adapter.address,
        settings.max_fee_rate,
    )
    return IdeaMarket(
        settings=settings, registry=registry, reserve=reserve, exchange=exchange
    )
