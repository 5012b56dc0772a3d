"""
Общие фикстуры: собранная система Registry + InterestManager + Exchange.

Параметры кривой: base_cost = 1.0, price_rise = 0.1, interval = 100 токенов,
trading fee = 1%, platform fee = 0.
"""

from dataclasses import dataclass

import pytest

from ideamarket.core.config import Settings
from ideamarket.exchange import IdeaTokenExchange
from ideamarket.ledger import InMemoryLedger, SimulatedLendingPool
from ideamarket.registry import MarketRegistry
from ideamarket.reserve import InterestManager
from ideamarket.system import create_idea_market
from ideamarket.verifiers import DomainNoSubdomainNameVerifier

TEN_POW_18 = 10**18

BASE_COST = TEN_POW_18
PRICE_RISE = 10**17
TOKENS_PER_INTERVAL = 100 * TEN_POW_18
TRADING_FEE_RATE = 100
PLATFORM_FEE_RATE = 0

ADMIN = "admin"
USER = "user"
OTHER = "other"
TRADING_FEE_ACCOUNT = "trading-fee-account"
REWARD_RECIPIENT = "reward-recipient"


@dataclass
class MarketSystem:
    collateral: InMemoryLedger
    reward: InMemoryLedger
    pool: SimulatedLendingPool
    reserve: InterestManager
    registry: MarketRegistry
    exchange: IdeaTokenExchange
    market_id: int
    token_id: int
    token: str

    @property
    def ledger(self) -> InMemoryLedger:
        """Ledger idea-токена рынка."""
        return self.registry.get_token_info(self.market_id, self.token_id).ledger

    def fund(self, account: str, amount: int) -> None:
        """Минт коллатерала и approve на Exchange."""
        self.collateral.mint(account, amount)
        self.collateral.approve(account, self.exchange.address, amount)


def build_market_system(
    trading_fee_rate: int = TRADING_FEE_RATE,
    platform_fee_rate: int = PLATFORM_FEE_RATE,
    reward_rate: int = 0,
) -> MarketSystem:
    collateral = InMemoryLedger("Dai Stablecoin", "DAI", address="dai")
    reward = InMemoryLedger("Compound", "COMP", address="comp")
    pool = SimulatedLendingPool(
        collateral, address="cdai", reward_token=reward, reward_rate=reward_rate
    )
    market = create_idea_market(
        ADMIN,
        TRADING_FEE_ACCOUNT,
        collateral,
        pool,
        reward_token=reward,
        reward_recipient=REWARD_RECIPIENT,
        settings=Settings(max_fee_rate=1_000, _env_file=None),
    )
    registry = market.registry

    market_id = registry.add_market(
        ADMIN,
        "main",
        DomainNoSubdomainNameVerifier(),
        BASE_COST,
        PRICE_RISE,
        TOKENS_PER_INTERVAL,
        trading_fee_rate,
        platform_fee_rate,
    )
    token_id = registry.add_token("test.com", market_id)
    token = registry.get_token_info(market_id, token_id).address

    return MarketSystem(
        collateral=collateral,
        reward=reward,
        pool=pool,
        reserve=market.reserve,
        registry=registry,
        exchange=market.exchange,
        market_id=market_id,
        token_id=token_id,
        token=token,
    )


@pytest.fixture
def system() -> MarketSystem:
    return build_market_system()


@pytest.fixture
def platform_system() -> MarketSystem:
    """trading fee = 1%, platform fee = 0.5%"""
    return build_market_system(trading_fee_rate=100, platform_fee_rate=50)
