"""
Тесты для IdeaTokenExchange

Проверяет:
1. Котировки buy/sell (эталонные значения кривой + 1% fee)
2. Покупка: оплата, trading fee, инвестирование, mint
3. Продажа: burn, redeem, выплата, trading fee
4. Slippage и нехватка средств: ошибка без изменения состояния
5. Platform fee: начисление и вывод владельцем платформы
6. Проценты пула не затрагивают сделки, продажа проходит при любом rate
7. execute_trade из JSON-запроса
8. withdraw_reward: admin-only вывод reward-актива резерва
"""

import jsonschema
import pytest

from conftest import (
    ADMIN,
    OTHER,
    REWARD_RECIPIENT,
    TEN_POW_18,
    TRADING_FEE_ACCOUNT,
    USER,
    MarketSystem,
    build_market_system,
)
from ideamarket.core.domain.trade import TradeSide
from ideamarket.core.errors import (
    InsufficientAllowance,
    InsufficientBalance,
    InsufficientSupply,
    InsufficientTokens,
    InvalidParameters,
    MarketNotFound,
    NotInitialized,
    SlippageExceeded,
    Unauthorized,
    UnknownToken,
)
from ideamarket.exchange import IdeaTokenExchange

TOKENS_250 = 250 * TEN_POW_18
FUNDING = 10_000 * TEN_POW_18


def snapshot(system: MarketSystem) -> tuple:
    """Наблюдаемое состояние системы для проверки отсутствия эффектов."""
    return (
        system.collateral.balance_of(USER),
        system.collateral.balance_of(TRADING_FEE_ACCOUNT),
        system.collateral.allowance(USER, system.exchange.address),
        system.ledger.total_supply(),
        system.ledger.balance_of(USER),
        system.reserve.invested_principal,
        system.reserve.get_total_value(),
    )


# =============================================================================
# КОТИРОВКИ
# =============================================================================


class TestQuotes:
    """Котировки без изменения состояния"""

    def test_buy_quote_from_zero_supply(self, system: MarketSystem) -> None:
        """raw 270 + 1% = 272.7"""
        assert system.exchange.get_cost_for_buying_tokens(system.token, TOKENS_250) == (
            2727 * 10**17
        )

    def test_buy_quote_breakdown(self, system: MarketSystem) -> None:
        amounts = system.exchange.get_costs_for_buying_tokens(system.token, TOKENS_250)
        assert amounts.raw == 270 * TEN_POW_18
        assert amounts.trading_fee == 27 * 10**17
        assert amounts.platform_fee == 0

    def test_sell_quote_exceeding_supply_rejected(self, system: MarketSystem) -> None:
        with pytest.raises(InsufficientSupply):
            system.exchange.get_price_for_selling_tokens(system.token, 1)

    def test_quote_unknown_token(self, system: MarketSystem) -> None:
        with pytest.raises(UnknownToken, match="token does not exist"):
            system.exchange.get_cost_for_buying_tokens("unknown", TOKENS_250)

    def test_quote_zero_amount_rejected(self, system: MarketSystem) -> None:
        with pytest.raises(InvalidParameters):
            system.exchange.get_cost_for_buying_tokens(system.token, 0)

    def test_quote_does_not_change_state(self, system: MarketSystem) -> None:
        system.fund(USER, FUNDING)
        before = snapshot(system)
        system.exchange.get_cost_for_buying_tokens(system.token, TOKENS_250)
        assert snapshot(system) == before


# =============================================================================
# ПОКУПКА / ПРОДАЖА
# =============================================================================


class TestBuyAndSell:
    """Сценарий: две покупки по 250, две продажи по 250"""

    def test_buy_sell_round_trip(self, system: MarketSystem) -> None:
        system.fund(USER, FUNDING)
        exchange = system.exchange

        # Покупка 1: supply 0 → 250
        cost = exchange.get_cost_for_buying_tokens(system.token, TOKENS_250)
        assert cost == 2727 * 10**17
        receipt = exchange.buy_tokens(USER, system.token, TOKENS_250, cost, USER)
        assert receipt.side == TradeSide.BUY
        assert receipt.total == cost
        assert receipt.supply_after == TOKENS_250
        assert system.ledger.balance_of(USER) == TOKENS_250
        assert system.collateral.balance_of(USER) == FUNDING - cost
        assert system.collateral.balance_of(TRADING_FEE_ACCOUNT) == 27 * 10**17
        assert system.reserve.invested_principal == 270 * TEN_POW_18

        # Покупка 2: supply 250 → 500, raw 330
        cost = exchange.get_cost_for_buying_tokens(system.token, TOKENS_250)
        assert cost == 3333 * 10**17
        exchange.buy_tokens(USER, system.token, TOKENS_250, cost, USER)
        assert system.ledger.total_supply() == 2 * TOKENS_250
        assert system.reserve.invested_principal == 600 * TEN_POW_18

        # Продажа 1: supply 500 → 250
        price = exchange.get_price_for_selling_tokens(system.token, TOKENS_250)
        assert price == 3267 * 10**17
        receipt = exchange.sell_tokens(USER, system.token, TOKENS_250, price, USER)
        assert receipt.side == TradeSide.SELL
        assert receipt.total == price
        assert system.reserve.invested_principal == 270 * TEN_POW_18

        # Продажа 2: supply 250 → 0
        price = exchange.get_price_for_selling_tokens(system.token, TOKENS_250)
        assert price == 2673 * 10**17
        exchange.sell_tokens(USER, system.token, TOKENS_250, price, USER)

        assert system.ledger.total_supply() == 0
        assert system.ledger.balance_of(USER) == 0
        assert system.reserve.invested_principal == 0
        assert system.reserve.get_total_value() == 0

        # Пользователь потерял ровно сумму комиссий четырёх сделок
        fees = (27 + 33 + 33 + 27) * 10**17
        assert system.collateral.balance_of(USER) == FUNDING - fees
        assert system.collateral.balance_of(TRADING_FEE_ACCOUNT) == fees

    def test_buy_for_recipient(self, system: MarketSystem) -> None:
        system.fund(USER, FUNDING)
        cost = system.exchange.get_cost_for_buying_tokens(system.token, TOKENS_250)
        receipt = system.exchange.buy_tokens(USER, system.token, TOKENS_250, cost, OTHER)

        assert receipt.trader == USER
        assert receipt.recipient == OTHER
        assert system.ledger.balance_of(OTHER) == TOKENS_250
        assert system.ledger.balance_of(USER) == 0

    def test_sell_proceeds_to_recipient(self, system: MarketSystem) -> None:
        system.fund(USER, FUNDING)
        cost = system.exchange.get_cost_for_buying_tokens(system.token, TOKENS_250)
        system.exchange.buy_tokens(USER, system.token, TOKENS_250, cost, USER)

        price = system.exchange.get_price_for_selling_tokens(system.token, TOKENS_250)
        system.exchange.sell_tokens(USER, system.token, TOKENS_250, price, OTHER)
        assert system.collateral.balance_of(OTHER) == price

    def test_max_cost_above_quote_accepted(self, system: MarketSystem) -> None:
        """Списывается фактическая стоимость, а не max_cost"""
        system.fund(USER, FUNDING)
        cost = system.exchange.get_cost_for_buying_tokens(system.token, TOKENS_250)
        system.exchange.buy_tokens(USER, system.token, TOKENS_250, FUNDING, USER)
        assert system.collateral.balance_of(USER) == FUNDING - cost

    def test_exchange_holds_no_collateral_after_trades(self, system: MarketSystem) -> None:
        system.fund(USER, FUNDING)
        system.exchange.buy_tokens(USER, system.token, TOKENS_250, FUNDING, USER)
        system.exchange.sell_tokens(USER, system.token, 100 * TEN_POW_18, 0, USER)
        assert system.collateral.balance_of(system.exchange.address) == 0


# =============================================================================
# ОШИБКИ: СОСТОЯНИЕ НЕ МЕНЯЕТСЯ
# =============================================================================


class TestTradeFailures:
    """Отклонённая сделка не оставляет следов"""

    def test_buy_slippage(self, system: MarketSystem) -> None:
        system.fund(USER, FUNDING)
        cost = system.exchange.get_cost_for_buying_tokens(system.token, TOKENS_250)
        before = snapshot(system)

        with pytest.raises(SlippageExceeded, match="cost exceeds max_cost"):
            system.exchange.buy_tokens(USER, system.token, TOKENS_250, cost - 1, USER)
        assert snapshot(system) == before

    def test_buy_quote_stale_after_other_trade(self, system: MarketSystem) -> None:
        """Котировка устаревает после сделки другого трейдера"""
        system.fund(USER, FUNDING)
        system.fund(OTHER, FUNDING)
        cost = system.exchange.get_cost_for_buying_tokens(system.token, TOKENS_250)
        system.exchange.buy_tokens(OTHER, system.token, TOKENS_250, cost, OTHER)

        with pytest.raises(SlippageExceeded):
            system.exchange.buy_tokens(USER, system.token, TOKENS_250, cost, USER)

    def test_buy_insufficient_allowance(self, system: MarketSystem) -> None:
        system.collateral.mint(USER, FUNDING)
        before = snapshot(system)

        with pytest.raises(InsufficientAllowance, match="not enough allowance"):
            system.exchange.buy_tokens(USER, system.token, TOKENS_250, FUNDING, USER)
        assert snapshot(system) == before

    def test_buy_insufficient_balance(self, system: MarketSystem) -> None:
        system.collateral.mint(USER, 100 * TEN_POW_18)
        system.collateral.approve(USER, system.exchange.address, FUNDING)
        before = snapshot(system)

        with pytest.raises(InsufficientBalance):
            system.exchange.buy_tokens(USER, system.token, TOKENS_250, FUNDING, USER)
        assert snapshot(system) == before

    def test_buy_unknown_token(self, system: MarketSystem) -> None:
        system.fund(USER, FUNDING)
        with pytest.raises(UnknownToken):
            system.exchange.buy_tokens(USER, "unknown", TOKENS_250, FUNDING, USER)

    @pytest.mark.parametrize("amount", [0, -1])
    def test_buy_non_positive_amount(self, system: MarketSystem, amount: int) -> None:
        system.fund(USER, FUNDING)
        with pytest.raises(InvalidParameters):
            system.exchange.buy_tokens(USER, system.token, amount, FUNDING, USER)

    def test_sell_not_enough_tokens(self, system: MarketSystem) -> None:
        system.fund(USER, FUNDING)
        system.exchange.buy_tokens(USER, system.token, TOKENS_250, FUNDING, OTHER)
        before = snapshot(system)

        with pytest.raises(InsufficientTokens, match="not enough tokens"):
            system.exchange.sell_tokens(USER, system.token, TOKENS_250, 0, USER)
        assert snapshot(system) == before

    def test_sell_slippage(self, system: MarketSystem) -> None:
        system.fund(USER, FUNDING)
        system.exchange.buy_tokens(USER, system.token, TOKENS_250, FUNDING, USER)
        price = system.exchange.get_price_for_selling_tokens(system.token, TOKENS_250)
        before = snapshot(system)

        with pytest.raises(SlippageExceeded, match="price subceeds min_price"):
            system.exchange.sell_tokens(USER, system.token, TOKENS_250, price + 1, USER)
        assert snapshot(system) == before

    def test_trade_before_initialize(self) -> None:
        exchange = IdeaTokenExchange()
        with pytest.raises(NotInitialized):
            exchange.buy_tokens(USER, "token", TOKENS_250, FUNDING, USER)

    def test_initialize_twice(self, system: MarketSystem) -> None:
        with pytest.raises(InvalidParameters, match="already initialized"):
            system.exchange.initialize(
                ADMIN,
                TRADING_FEE_ACCOUNT,
                system.registry,
                system.reserve,
                system.collateral,
            )


# =============================================================================
# PLATFORM FEE
# =============================================================================


class TestPlatformFee:
    """trading 1% + platform 0.5%"""

    def test_platform_fee_accrues_on_buy_and_sell(
        self, platform_system: MarketSystem
    ) -> None:
        system = platform_system
        system.fund(USER, FUNDING)

        buy = system.exchange.buy_tokens(USER, system.token, TOKENS_250, FUNDING, USER)
        assert buy.total == 27405 * 10**16
        assert buy.platform_fee == 135 * 10**16
        assert system.exchange.get_platform_fee_payable(system.market_id) == 135 * 10**16

        sell = system.exchange.sell_tokens(USER, system.token, TOKENS_250, 0, USER)
        assert sell.total == 26595 * 10**16
        assert system.exchange.get_platform_fee_payable(system.market_id) == 27 * 10**17

        # Platform fee остаётся в резерве
        assert system.reserve.get_total_value() == 27 * 10**17
        assert system.collateral.balance_of(TRADING_FEE_ACCOUNT) == 54 * 10**17

    def test_withdraw_platform_fee(self, platform_system: MarketSystem) -> None:
        system = platform_system
        system.fund(USER, FUNDING)
        system.exchange.buy_tokens(USER, system.token, TOKENS_250, FUNDING, USER)
        system.exchange.sell_tokens(USER, system.token, TOKENS_250, 0, USER)

        system.exchange.set_platform_owner(ADMIN, system.market_id, "platform")
        assert system.exchange.get_platform_owner(system.market_id) == "platform"

        withdrawn = system.exchange.withdraw_platform_fee("platform", system.market_id)
        assert withdrawn == 27 * 10**17
        assert system.collateral.balance_of("platform") == 27 * 10**17
        assert system.exchange.get_platform_fee_payable(system.market_id) == 0
        assert system.reserve.get_total_value() == 0

    def test_withdraw_platform_fee_requires_platform_owner(
        self, platform_system: MarketSystem
    ) -> None:
        system = platform_system
        system.exchange.set_platform_owner(ADMIN, system.market_id, "platform")
        with pytest.raises(Unauthorized):
            system.exchange.withdraw_platform_fee(USER, system.market_id)

    def test_set_platform_owner_owner_only(self, platform_system: MarketSystem) -> None:
        with pytest.raises(Unauthorized):
            platform_system.exchange.set_platform_owner(
                USER, platform_system.market_id, USER
            )

    def test_set_platform_owner_unknown_market(
        self, platform_system: MarketSystem
    ) -> None:
        with pytest.raises(MarketNotFound):
            platform_system.exchange.set_platform_owner(ADMIN, 99, "platform")

    def test_withdraw_nothing_accrued(self, platform_system: MarketSystem) -> None:
        system = platform_system
        system.exchange.set_platform_owner(ADMIN, system.market_id, "platform")
        assert system.exchange.withdraw_platform_fee("platform", system.market_id) == 0


# =============================================================================
# TRADING FEE ACCOUNT
# =============================================================================


class TestTradingFeeAccount:
    """Смена получателя trading fee"""

    def test_set_trading_fee_account(self, system: MarketSystem) -> None:
        system.exchange.set_trading_fee_account(ADMIN, "new-fee-account")
        system.fund(USER, FUNDING)
        system.exchange.buy_tokens(USER, system.token, TOKENS_250, FUNDING, USER)
        assert system.collateral.balance_of("new-fee-account") == 27 * 10**17

    def test_set_trading_fee_account_owner_only(self, system: MarketSystem) -> None:
        with pytest.raises(Unauthorized, match="onlyOwner"):
            system.exchange.set_trading_fee_account(USER, USER)


# =============================================================================
# REWARD
# =============================================================================


class TestReward:
    """Вывод reward-актива пула через Exchange"""

    def test_withdraw_reward(self) -> None:
        system = build_market_system(reward_rate=10**17)
        system.fund(USER, FUNDING)
        system.exchange.buy_tokens(USER, system.token, TOKENS_250, FUNDING, USER)

        # Вложено raw 270, reward 10% от депозита
        assert system.exchange.withdraw_reward(ADMIN) == 27 * TEN_POW_18
        assert system.reward.balance_of(REWARD_RECIPIENT) == 27 * TEN_POW_18
        assert system.reward.balance_of(system.reserve.address) == 0
        assert system.exchange.withdraw_reward(ADMIN) == 0

    def test_withdraw_reward_admin_only(self) -> None:
        system = build_market_system(reward_rate=10**17)
        system.fund(USER, FUNDING)
        system.exchange.buy_tokens(USER, system.token, TOKENS_250, FUNDING, USER)

        with pytest.raises(Unauthorized, match="onlyOwner"):
            system.exchange.withdraw_reward(USER)
        assert system.reward.balance_of(REWARD_RECIPIENT) == 0

    def test_reserve_rejects_direct_call_from_admin(self, system: MarketSystem) -> None:
        with pytest.raises(Unauthorized):
            system.reserve.withdraw_reward(ADMIN)


# =============================================================================
# ПРОЦЕНТЫ
# =============================================================================


class TestInterestIsolation:
    """Рост exchange rate пула не влияет на цены и остаётся в резерве"""

    def test_interest_stays_in_reserve(self, system: MarketSystem) -> None:
        system.fund(USER, FUNDING)
        system.exchange.buy_tokens(USER, system.token, TOKENS_250, FUNDING, USER)

        system.pool.set_exchange_rate(11 * 10**17)
        assert system.reserve.get_accrued_interest() == 27 * TEN_POW_18

        # Цена определяется кривой, а не стоимостью резерва
        price = system.exchange.get_price_for_selling_tokens(system.token, TOKENS_250)
        assert price == 2673 * 10**17

        system.exchange.sell_tokens(USER, system.token, TOKENS_250, price, USER)
        assert system.reserve.invested_principal == 0

        assert system.reserve.get_accrued_interest() == 27 * TEN_POW_18

    def test_round_trip_at_fractional_rate(self) -> None:
        """Rate пула не делит суммы нацело: продажа всё равно проходит"""
        system = build_market_system(trading_fee_rate=0, platform_fee_rate=0)
        system.pool.set_exchange_rate(17 * 10**17)
        system.fund(USER, FUNDING)

        system.exchange.buy_tokens(USER, system.token, TOKENS_250, FUNDING, USER)
        assert system.reserve.get_total_value() == 270 * TEN_POW_18

        system.exchange.sell_tokens(USER, system.token, TOKENS_250, 0, USER)
        assert system.ledger.total_supply() == 0
        assert system.reserve.invested_principal == 0
        assert system.reserve.get_total_value() == 0
        assert system.collateral.balance_of(USER) == FUNDING

    def test_several_buyers_exit_at_fractional_rate(self) -> None:
        system = build_market_system()
        system.pool.set_exchange_rate(17 * 10**17)
        system.fund(USER, FUNDING)
        system.fund(OTHER, FUNDING)

        system.exchange.buy_tokens(USER, system.token, TOKENS_250, FUNDING, USER)
        system.exchange.buy_tokens(OTHER, system.token, TOKENS_250, FUNDING, OTHER)
        system.pool.set_exchange_rate(19 * 10**17)

        # Продажа другими кусками, чем покупка
        system.exchange.sell_tokens(OTHER, system.token, 100 * TEN_POW_18, 0, OTHER)
        system.exchange.sell_tokens(USER, system.token, TOKENS_250, 0, USER)
        system.exchange.sell_tokens(OTHER, system.token, 150 * TEN_POW_18, 0, OTHER)
        assert system.ledger.total_supply() == 0
        assert system.reserve.invested_principal == 0
        assert system.reserve.get_accrued_interest() == system.reserve.get_total_value()
        assert system.reserve.get_accrued_interest() > 70 * TEN_POW_18


# =============================================================================
# EXECUTE TRADE (JSON)
# =============================================================================


class TestExecuteTrade:
    """Запросы по контракту trade_request"""

    def test_execute_buy_then_sell(self, system: MarketSystem) -> None:
        system.fund(USER, FUNDING)
        receipt = system.exchange.execute_trade(
            USER,
            {
                "side": "buy",
                "token": system.token,
                "amount": str(TOKENS_250),
                "limit": str(FUNDING),
            },
        )
        assert receipt.side == TradeSide.BUY
        assert receipt.recipient == USER
        assert receipt.total == 2727 * 10**17

        receipt = system.exchange.execute_trade(
            USER,
            {
                "side": "sell",
                "token": system.token,
                "amount": TOKENS_250,
                "limit": 0,
                "recipient": OTHER,
            },
        )
        assert receipt.side == TradeSide.SELL
        assert system.collateral.balance_of(OTHER) == 2673 * 10**17

    def test_execute_invalid_request(self, system: MarketSystem) -> None:
        with pytest.raises(jsonschema.ValidationError):
            system.exchange.execute_trade(
                USER, {"side": "hold", "token": system.token, "amount": 1, "limit": 0}
            )
