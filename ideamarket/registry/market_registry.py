"""
MarketRegistry — Реестр рынков и idea-токенов

Рынки и токены хранятся append-only под последовательными id (с 1),
параллельные отображения имя → id обеспечивают уникальность.
Записи никогда не удаляются.

Порядок проверок:
- add_market: owner → параметры и верификатор (InvalidParameters) → имя (MarketExists)
- add_token: рынок (MarketNotFound) → верификатор + уникальность
  (NameVerificationFailed, одна ошибка для обоих случаев)

Каждый токен получает собственный InMemoryLedger; единственный
минтер/бёрнер — адрес Exchange, заданный при initialize().
"""

from typing import Any, Dict, List, Optional

from ideamarket.core.access import Ownable, serialized
from ideamarket.core.config import Settings, get_settings
from ideamarket.core.contracts import parse_market_definition
from ideamarket.core.domain.market import Market
from ideamarket.core.domain.token import TokenIDPair, TokenInfo
from ideamarket.core.errors import (
    InvalidParameters,
    MarketExists,
    MarketNotFound,
    NameVerificationFailed,
)
from ideamarket.core.logging import get_logger
from ideamarket.core.math.bonding_curve import FEE_RATE_SCALE
from ideamarket.core.math.fixed_point import is_valid_amount
from ideamarket.ledger.fungible import InMemoryLedger
from ideamarket.verifiers.name_verifier import NameVerifier

logger = get_logger(__name__)


class MarketRegistry(Ownable):
    """
    Реестр рынков и токенов.

    Two-phase construction: MarketRegistry() → initialize(owner, exchange).
    """

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__()
        self.settings = settings or get_settings()
        self._exchange: Optional[str] = None

        # Arena: индекс = id - 1
        self._markets: List[Market] = []
        self._market_ids_by_name: Dict[str, int] = {}

        # market_id → список токенов (индекс = token_id - 1)
        self._tokens: Dict[int, List[TokenInfo]] = {}
        self._token_ids_by_name: Dict[int, Dict[str, int]] = {}

        # Адрес ledger → (market_id, token_id)
        self._token_id_pairs: Dict[str, TokenIDPair] = {}

    @serialized
    def initialize(self, owner: str, exchange: str) -> None:
        if not exchange:
            raise ValueError("exchange must be a non-empty address")
        self._init_owner(owner)
        self._exchange = exchange
        logger.info("MarketRegistry initialized: owner=%s exchange=%s", owner, exchange)

    @property
    def exchange(self) -> Optional[str]:
        return self._exchange

    # =========================================================================
    # MARKETS
    # =========================================================================

    @serialized
    def add_market(
        self,
        caller: str,
        name: str,
        name_verifier: Optional[NameVerifier],
        base_cost: int,
        price_rise: int,
        tokens_per_interval: int,
        trading_fee_rate: int,
        platform_fee_rate: int,
    ) -> int:
        """
        Регистрация нового рынка (admin-only).

        Returns:
            id нового рынка

        Raises:
            Unauthorized: caller не владелец
            InvalidParameters: base_cost/price_rise/tokens_per_interval <= 0, fee вне границ,
                сумма fee больше 100% или верификатор без is_valid()
            MarketExists: имя уже занято
        """
        self._only_owner(caller)

        if not isinstance(name, str) or not name:
            raise InvalidParameters("add_market: invalid parameters")
        if name_verifier is not None and not isinstance(name_verifier, NameVerifier):
            raise InvalidParameters("add_market: invalid parameters")
        for value in (base_cost, price_rise, tokens_per_interval):
            if not is_valid_amount(value) or value <= 0:
                raise InvalidParameters("add_market: invalid parameters")
        self._validate_fee_rate(trading_fee_rate, "add_market")
        self._validate_fee_rate(platform_fee_rate, "add_market")
        self._validate_combined_fee_rate(
            trading_fee_rate, platform_fee_rate, "add_market"
        )

        if name in self._market_ids_by_name:
            raise MarketExists("add_market: market exists already")

        market_id = len(self._markets) + 1
        market = Market(
            id=market_id,
            name=name,
            name_verifier=name_verifier,
            base_cost=base_cost,
            price_rise=price_rise,
            tokens_per_interval=tokens_per_interval,
            trading_fee_rate=trading_fee_rate,
            platform_fee_rate=platform_fee_rate,
            num_tokens=0,
        )
        self._markets.append(market)
        self._market_ids_by_name[name] = market_id
        self._tokens[market_id] = []
        self._token_ids_by_name[market_id] = {}

        logger.info(
            "Market added: id=%d name=%s base_cost=%d price_rise=%d interval=%d "
            "trading_fee=%d platform_fee=%d",
            market_id,
            name,
            base_cost,
            price_rise,
            tokens_per_interval,
            trading_fee_rate,
            platform_fee_rate,
        )
        return market_id

    def add_market_from_definition(
        self,
        caller: str,
        definition: Dict[str, Any],
        name_verifier: Optional[NameVerifier],
    ) -> int:
        """
        Регистрация рынка из JSON-определения (контракт market_definition).

        Raises:
            jsonschema.ValidationError: Определение не соответствует схеме
        """
        parsed = parse_market_definition(definition)
        return self.add_market(
            caller,
            parsed.name,
            name_verifier,
            parsed.base_cost,
            parsed.price_rise,
            parsed.tokens_per_interval,
            parsed.trading_fee_rate,
            parsed.platform_fee_rate,
        )

    @serialized
    def set_trading_fee(self, caller: str, market_id: int, trading_fee_rate: int) -> None:
        self._only_owner(caller)
        market = self._require_market(market_id, "set_trading_fee")
        self._validate_fee_rate(trading_fee_rate, "set_trading_fee")
        self._validate_combined_fee_rate(
            trading_fee_rate, market.platform_fee_rate, "set_trading_fee"
        )
        self._markets[market_id - 1] = market.model_copy(
            update={"trading_fee_rate": trading_fee_rate}
        )
        logger.info("Market %d trading fee set to %d", market_id, trading_fee_rate)

    @serialized
    def set_platform_fee(
        self, caller: str, market_id: int, platform_fee_rate: int
    ) -> None:
        self._only_owner(caller)
        market = self._require_market(market_id, "set_platform_fee")
        self._validate_fee_rate(platform_fee_rate, "set_platform_fee")
        self._validate_combined_fee_rate(
            market.trading_fee_rate, platform_fee_rate, "set_platform_fee"
        )
        self._markets[market_id - 1] = market.model_copy(
            update={"platform_fee_rate": platform_fee_rate}
        )
        logger.info("Market %d platform fee set to %d", market_id, platform_fee_rate)

    # =========================================================================
    # TOKENS
    # =========================================================================

    @serialized
    def add_token(self, name: str, market_id: int) -> int:
        """
        Регистрация токена в рынке (permissionless).

        Returns:
            id токена в рынке

        Raises:
            MarketNotFound: рынок не существует
            NameVerificationFailed: имя невалидно или уже занято в рынке
        """
        self._require_initialized()
        market = self._require_market(market_id, "add_token")

        if not self._is_valid_token_name(name, market):
            raise NameVerificationFailed("add_token: name verification failed")

        token_id = market.num_tokens + 1
        ledger = InMemoryLedger(
            name=name,
            symbol=name,
            address=f"idea-token:{market_id}:{token_id}",
            owner=self._exchange,
        )
        token = TokenInfo(id=token_id, market_id=market_id, name=name, ledger=ledger)

        self._tokens[market_id].append(token)
        self._token_ids_by_name[market_id][name] = token_id
        self._token_id_pairs[ledger.address] = TokenIDPair(
            exists=True, market_id=market_id, token_id=token_id
        )
        self._markets[market_id - 1] = market.model_copy(update={"num_tokens": token_id})

        logger.info(
            "Token added: market=%d id=%d name=%s address=%s",
            market_id,
            token_id,
            name,
            ledger.address,
        )
        return token_id

    # =========================================================================
    # LOOKUPS (никогда не бросают)
    # =========================================================================

    def get_num_markets(self) -> int:
        return len(self._markets)

    def get_market_id_by_name(self, name: str) -> int:
        """id рынка или 0, если не найден."""
        return self._market_ids_by_name.get(name, 0)

    def get_market_details_by_id(self, market_id: int) -> Market:
        if not self._market_exists(market_id):
            return Market.missing()
        return self._markets[market_id - 1]

    def get_market_details_by_name(self, name: str) -> Market:
        return self.get_market_details_by_id(self.get_market_id_by_name(name))

    def get_token_id_by_name(self, name: str, market_id: int) -> int:
        """id токена в рынке или 0, если не найден."""
        return self._token_ids_by_name.get(market_id, {}).get(name, 0)

    def get_token_info(self, market_id: int, token_id: int) -> TokenInfo:
        tokens = self._tokens.get(market_id)
        if not tokens or not isinstance(token_id, int) or not 1 <= token_id <= len(tokens):
            return TokenInfo.missing()
        return tokens[token_id - 1]

    def get_token_id_pair(self, token: str) -> TokenIDPair:
        return self._token_id_pairs.get(token, TokenIDPair())

    # =========================================================================
    # INTERNAL
    # =========================================================================

    def _market_exists(self, market_id: int) -> bool:
        return (
            is_valid_amount(market_id) and 1 <= market_id <= len(self._markets)
        )

    def _require_market(self, market_id: int, operation: str) -> Market:
        if not self._market_exists(market_id):
            raise MarketNotFound(f"{operation}: market does not exist")
        return self._markets[market_id - 1]

    def _validate_fee_rate(self, rate: int, operation: str) -> None:
        if not is_valid_amount(rate) or rate < 0 or rate > self.settings.max_fee_rate:
            raise InvalidParameters(
                f"{operation}: fee rate must be within [0, {self.settings.max_fee_rate}]"
            )

    @staticmethod
    def _validate_combined_fee_rate(
        trading_fee_rate: int, platform_fee_rate: int, operation: str
    ) -> None:
        # Цена продажи raw - fees не может быть отрицательной
        if trading_fee_rate + platform_fee_rate > FEE_RATE_SCALE:
            raise InvalidParameters(
                f"{operation}: combined fee rate must not exceed {FEE_RATE_SCALE}"
            )

    def _is_valid_token_name(self, name: str, market: Market) -> bool:
        if name in self._token_ids_by_name[market.id]:
            return False
        verifier = market.name_verifier
        if verifier is None:
            return False
        return bool(verifier.is_valid(name))
