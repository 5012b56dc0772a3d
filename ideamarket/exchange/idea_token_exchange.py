"""
IdeaTokenExchange — Покупка и продажа idea-токенов по кривой

Цена считается по интегралу кривой рынка (core.math.bonding_curve)
от текущего supply токена. Котировка устаревает при любой сделке
с тем же токеном, поэтому buy/sell принимают границу maxCost/minPrice.

Покупка (cost = raw + trading_fee + platform_fee):
    1. pull cost коллатерала от caller (allowance, затем баланс, до эффектов)
    2. trading_fee → trading_fee_account
    3. raw + platform_fee → InterestManager, invest как principal
    4. platform_fee → начисление рынку (выводится владельцем платформы)
    5. mint amount → recipient

Продажа (price = raw - trading_fee - platform_fee):
    1. burn amount у caller
    2. redeem raw - platform_fee из резерва (platform_fee остаётся в пуле)
    3. price → recipient, trading_fee → trading_fee_account
    4. platform_fee → начисление рынку

Все предусловия проверяются до первого эффекта: сделка либо
исполняется целиком, либо не меняет состояние.
"""

from typing import Any, Dict, Optional, Tuple, Union

from ideamarket.core.access import Ownable, serialized
from ideamarket.core.contracts import parse_trade_request
from ideamarket.core.domain.market import Market
from ideamarket.core.domain.token import TokenInfo
from ideamarket.core.domain.trade import TradeReceipt, TradeRequest, TradeSide
from ideamarket.core.errors import (
    InsufficientAllowance,
    InsufficientBalance,
    InsufficientReserve,
    InsufficientSupply,
    InsufficientTokens,
    InvalidParameters,
    MarketNotFound,
    SlippageExceeded,
    Unauthorized,
    UnknownToken,
)
from ideamarket.core.logging import get_logger
from ideamarket.core.math.bonding_curve import (
    CostAndPriceAmounts,
    costs_for_buying,
    prices_for_selling,
)
from ideamarket.core.math.fixed_point import is_valid_amount
from ideamarket.ledger.fungible import FungibleLedger
from ideamarket.registry.market_registry import MarketRegistry
from ideamarket.reserve.interest_manager import InterestManager

logger = get_logger(__name__)


class IdeaTokenExchange(Ownable):
    """
    Биржа idea-токенов.

    Two-phase construction: IdeaTokenExchange() → initialize(...).
    Разделяет RLock с InterestManager: все движения резерва и сделки
    сериализуются через одну блокировку.
    """

    def __init__(self, address: str = "idea-token-exchange"):
        super().__init__()
        self.address = address

        self.registry: Optional[MarketRegistry] = None
        self.reserve: Optional[InterestManager] = None
        self.collateral: Optional[FungibleLedger] = None
        self.trading_fee_account: Optional[str] = None

        # market_id → накопленная platform fee / владелец платформы
        self._platform_fees: Dict[int, int] = {}
        self._platform_owners: Dict[int, str] = {}

    def initialize(
        self,
        owner: str,
        trading_fee_account: str,
        registry: MarketRegistry,
        reserve: InterestManager,
        collateral: FungibleLedger,
    ) -> None:
        """
        Args:
            owner: администратор
            trading_fee_account: получатель trading fee
            registry: реестр рынков/токенов
            reserve: InterestManager (владелец — этот Exchange)
            collateral: ledger коллатерала
        """
        if not trading_fee_account:
            raise ValueError("trading_fee_account must be a non-empty address")

        with reserve.lock:
            self._lock = reserve.lock
            self._init_owner(owner)
            self.trading_fee_account = trading_fee_account
            self.registry = registry
            self.reserve = reserve
            self.collateral = collateral

        logger.info(
            "IdeaTokenExchange initialized: owner=%s trading_fee_account=%s",
            owner,
            trading_fee_account,
        )

    # =========================================================================
    # QUOTES
    # =========================================================================

    def get_costs_for_buying_tokens(self, token: str, amount: int) -> CostAndPriceAmounts:
        """Разбивка стоимости покупки amount токенов."""
        market, info = self._resolve(token, "get_cost_for_buying_tokens")
        self._validate_trade_amount(amount, "get_cost_for_buying_tokens")
        return costs_for_buying(
            market.curve(),
            info.ledger.total_supply(),
            amount,
            market.trading_fee_rate,
            market.platform_fee_rate,
        )

    def get_prices_for_selling_tokens(
        self, token: str, amount: int
    ) -> CostAndPriceAmounts:
        """
        Разбивка выручки от продажи amount токенов.

        Raises:
            InsufficientSupply: amount > supply
        """
        market, info = self._resolve(token, "get_price_for_selling_tokens")
        self._validate_trade_amount(amount, "get_price_for_selling_tokens")
        supply = info.ledger.total_supply()
        if amount > supply:
            raise InsufficientSupply("get_price_for_selling_tokens: amount exceeds supply")
        return prices_for_selling(
            market.curve(),
            supply,
            amount,
            market.trading_fee_rate,
            market.platform_fee_rate,
        )

    def get_cost_for_buying_tokens(self, token: str, amount: int) -> int:
        cost = self.get_costs_for_buying_tokens(token, amount).total
        logger.debug("Quote buy %s amount=%d cost=%d", token, amount, cost)
        return cost

    def get_price_for_selling_tokens(self, token: str, amount: int) -> int:
        price = self.get_prices_for_selling_tokens(token, amount).total
        logger.debug("Quote sell %s amount=%d price=%d", token, amount, price)
        return price

    # =========================================================================
    # TRADING
    # =========================================================================

    @serialized
    def buy_tokens(
        self, caller: str, token: str, amount: int, max_cost: int, recipient: str
    ) -> TradeReceipt:
        """
        Покупка amount токенов для recipient.

        Raises:
            UnknownToken: токен не зарегистрирован
            SlippageExceeded: cost > max_cost
            InsufficientAllowance / InsufficientBalance: нельзя списать cost с caller
        """
        self._require_initialized()
        market, info = self._resolve(token, "buy_tokens")
        self._validate_trade_amount(amount, "buy_tokens")

        supply = info.ledger.total_supply()
        amounts = costs_for_buying(
            market.curve(),
            supply,
            amount,
            market.trading_fee_rate,
            market.platform_fee_rate,
        )

        if amounts.total > max_cost:
            raise SlippageExceeded("buy_tokens: cost exceeds max_cost")
        if self.collateral.allowance(caller, self.address) < amounts.total:
            raise InsufficientAllowance("buy_tokens: not enough allowance")
        if self.collateral.balance_of(caller) < amounts.total:
            raise InsufficientBalance("buy_tokens: not enough collateral")

        # Оплата полностью до mint
        self.collateral.transfer_from(self.address, caller, self.address, amounts.total)

        if amounts.trading_fee > 0:
            self.collateral.transfer(
                self.address, self.trading_fee_account, amounts.trading_fee
            )

        invest_amount = amounts.total - amounts.trading_fee
        if invest_amount > 0:
            self.collateral.transfer(self.address, self.reserve.address, invest_amount)
            self.reserve.invest(invest_amount)

        self._accrue_platform_fee(market.id, amounts.platform_fee)
        info.ledger.mint(recipient, amount, caller=self.address)

        receipt = self._receipt(
            TradeSide.BUY, token, info, caller, recipient, amount, amounts
        )
        logger.info(
            "Buy: token=%s trader=%s recipient=%s amount=%d cost=%d "
            "trading_fee=%d platform_fee=%d supply=%d",
            token,
            caller,
            recipient,
            amount,
            amounts.total,
            amounts.trading_fee,
            amounts.platform_fee,
            receipt.supply_after,
        )
        return receipt

    @serialized
    def sell_tokens(
        self, caller: str, token: str, amount: int, min_price: int, recipient: str
    ) -> TradeReceipt:
        """
        Продажа amount токенов caller, выручка — recipient.

        Raises:
            UnknownToken: токен не зарегистрирован
            InsufficientTokens: баланс caller < amount
            SlippageExceeded: price < min_price
        """
        self._require_initialized()
        market, info = self._resolve(token, "sell_tokens")
        self._validate_trade_amount(amount, "sell_tokens")

        if info.ledger.balance_of(caller) < amount:
            raise InsufficientTokens("sell_tokens: not enough tokens")

        supply = info.ledger.total_supply()
        amounts = prices_for_selling(
            market.curve(),
            supply,
            amount,
            market.trading_fee_rate,
            market.platform_fee_rate,
        )

        if amounts.total < min_price:
            raise SlippageExceeded("sell_tokens: price subceeds min_price")

        redeem_amount = amounts.raw - amounts.platform_fee
        if redeem_amount > self.reserve.get_total_value() - self.reserve.total_donated:
            raise InsufficientReserve("sell_tokens: not enough reserve")

        info.ledger.burn(caller, amount, caller=self.address)

        if redeem_amount > 0:
            self.reserve.redeem(self.address, self.address, redeem_amount)
        if amounts.total > 0:
            self.collateral.transfer(self.address, recipient, amounts.total)
        if amounts.trading_fee > 0:
            self.collateral.transfer(
                self.address, self.trading_fee_account, amounts.trading_fee
            )

        self._accrue_platform_fee(market.id, amounts.platform_fee)

        receipt = self._receipt(
            TradeSide.SELL, token, info, caller, recipient, amount, amounts
        )
        logger.info(
            "Sell: token=%s trader=%s recipient=%s amount=%d price=%d "
            "trading_fee=%d platform_fee=%d supply=%d",
            token,
            caller,
            recipient,
            amount,
            amounts.total,
            amounts.trading_fee,
            amounts.platform_fee,
            receipt.supply_after,
        )
        return receipt

    def execute_trade(
        self, caller: str, request: Union[TradeRequest, Dict[str, Any]]
    ) -> TradeReceipt:
        """
        Исполнение запроса из JSON (контракт trade_request).

        Raises:
            jsonschema.ValidationError: запрос не соответствует схеме
        """
        if not isinstance(request, TradeRequest):
            request = parse_trade_request(request)

        recipient = request.recipient or caller
        if request.side == TradeSide.BUY:
            return self.buy_tokens(
                caller, request.token, request.amount, request.limit, recipient
            )
        return self.sell_tokens(
            caller, request.token, request.amount, request.limit, recipient
        )

    # =========================================================================
    # FEES
    # =========================================================================

    @serialized
    def set_trading_fee_account(self, caller: str, account: str) -> None:
        self._only_owner(caller)
        if not account:
            raise ValueError("account must be a non-empty address")
        self.trading_fee_account = account
        logger.info("Trading fee account set to %s", account)

    @serialized
    def set_platform_owner(self, caller: str, market_id: int, account: str) -> None:
        """Назначение получателя platform fee рынка (owner-only)."""
        self._only_owner(caller)
        if not self.registry.get_market_details_by_id(market_id).exists:
            raise MarketNotFound("set_platform_owner: market does not exist")
        if not account:
            raise ValueError("account must be a non-empty address")
        self._platform_owners[market_id] = account
        logger.info("Market %d platform owner set to %s", market_id, account)

    def get_platform_owner(self, market_id: int) -> Optional[str]:
        return self._platform_owners.get(market_id)

    def get_platform_fee_payable(self, market_id: int) -> int:
        return self._platform_fees.get(market_id, 0)

    @serialized
    def withdraw_platform_fee(self, caller: str, market_id: int) -> int:
        """
        Вывод накопленной platform fee рынка её владельцу.

        Raises:
            MarketNotFound: рынок не существует
            Unauthorized: caller не владелец платформы рынка
        """
        self._require_initialized()
        if not self.registry.get_market_details_by_id(market_id).exists:
            raise MarketNotFound("withdraw_platform_fee: market does not exist")
        if caller != self._platform_owners.get(market_id):
            raise Unauthorized("withdraw_platform_fee: caller is not the platform owner")

        amount = self._platform_fees.get(market_id, 0)
        if amount > 0:
            self.reserve.redeem(self.address, caller, amount)
            self._platform_fees[market_id] = 0

        logger.info("Platform fee of %d withdrawn for market %d", amount, market_id)
        return amount

    # =========================================================================
    # REWARD
    # =========================================================================

    @serialized
    def withdraw_reward(self, caller: str) -> int:
        """
        Вывод reward-актива резерва его фиксированному получателю (admin-only).

        InterestManager принимает вызов только от своего владельца (Exchange).

        Returns:
            Переведённая сумма (0 без reward_token у резерва)

        Raises:
            Unauthorized: caller не администратор
        """
        self._only_owner(caller)
        amount = self.reserve.withdraw_reward(self.address)
        logger.info("Reward sweep requested by %s: %d", caller, amount)
        return amount

    # =========================================================================
    # INTERNAL
    # =========================================================================

    def _resolve(self, token: str, operation: str) -> Tuple[Market, TokenInfo]:
        self._require_initialized()
        pair = self.registry.get_token_id_pair(token)
        if not pair.exists:
            raise UnknownToken(f"{operation}: token does not exist")
        market = self.registry.get_market_details_by_id(pair.market_id)
        info = self.registry.get_token_info(pair.market_id, pair.token_id)
        return market, info

    @staticmethod
    def _validate_trade_amount(amount: int, operation: str) -> None:
        if not is_valid_amount(amount) or amount <= 0:
            raise InvalidParameters(f"{operation}: amount must be a positive integer")

    def _accrue_platform_fee(self, market_id: int, fee: int) -> None:
        if fee > 0:
            self._platform_fees[market_id] = self._platform_fees.get(market_id, 0) + fee

    @staticmethod
    def _receipt(
        side: TradeSide,
        token: str,
        info: TokenInfo,
        caller: str,
        recipient: str,
        amount: int,
        amounts: CostAndPriceAmounts,
    ) -> TradeReceipt:
        return TradeReceipt(
            side=side,
            token=token,
            market_id=info.market_id,
            token_id=info.id,
            trader=caller,
            recipient=recipient,
            amount=amount,
            raw=amounts.raw,
            trading_fee=amounts.trading_fee,
            platform_fee=amounts.platform_fee,
            total=amounts.total,
            supply_after=info.ledger.total_supply(),
        )
