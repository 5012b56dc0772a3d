"""
LendingAdapter — Интерфейс пула кредитования и его симуляция

Пул принимает коллатерал и выдаёт shares по текущему exchange rate
(underlying на share, fixed point 10**18). Exchange rate только растёт:
это источник процентного дохода.

ФОРМУЛЫ:
    shares      = amount * 10**18 // rate                    (deposit, floor)
    remainder  += amount * 10**18 - shares * rate            (доля меньше одного share)
    underlying  = (shares * rate + remainder) // 10**18
    amount      = shares * rate // 10**18                    (withdraw, floor)

Остаток от деления при депозите не теряется: он учитывается за держателем
и переводится в целые shares, как только накопится. Поэтому
withdraw_underlying() выплачивает ровно внесённую сумму при любом rate.

SimulatedLendingPool дополнительно начисляет reward-актив (аналог COMP)
пропорционально внесённому коллатералу; забирается через claim_reward().
"""

from typing import Dict, Optional, Protocol, runtime_checkable

from ideamarket.core.errors import InsufficientBalance
from ideamarket.core.logging import get_logger
from ideamarket.core.math.fixed_point import (
    FIXED_POINT_SCALE,
    mul_div_floor,
    validate_amount,
    validate_positive_amount,
)
from ideamarket.ledger.fungible import InMemoryLedger

logger = get_logger(__name__)


@runtime_checkable
class LendingAdapter(Protocol):
    """Интерфейс пула кредитования."""

    address: str

    def deposit(self, depositor: str, amount: int) -> int: ...

    def withdraw(self, holder: str, shares: int) -> int: ...

    def withdraw_underlying(self, holder: str, amount: int) -> int: ...

    def exchange_rate(self) -> int: ...

    def balance_of(self, holder: str) -> int: ...

    def balance_of_underlying(self, holder: str) -> int: ...

    def claim_reward(self, holder: str) -> int: ...


class SimulatedLendingPool:
    """
    In-memory пул кредитования.

    Рост exchange rate покрывается минтом коллатерала на адрес пула
    (симуляция процентов заёмщиков), поэтому ledger коллатерала должен
    разрешать минт пулу (owner=None или owner=pool.address).
    """

    def __init__(
        self,
        collateral: InMemoryLedger,
        address: str = "lending-pool",
        initial_exchange_rate: int = FIXED_POINT_SCALE,
        reward_token: Optional[InMemoryLedger] = None,
        reward_rate: int = 0,
    ):
        """
        Args:
            collateral: ledger базового актива
            address: адрес пула
            initial_exchange_rate: стартовый rate (10**18 = 1 underlying за share)
            reward_token: ledger reward-актива (optional)
            reward_rate: reward на единицу депозита (fixed point, 10**18 = 1:1)
        """
        validate_positive_amount(initial_exchange_rate, "initial_exchange_rate")
        validate_amount(reward_rate, "reward_rate")

        self.collateral = collateral
        self.address = address
        self.reward_token = reward_token
        self.reward_rate = reward_rate

        self._exchange_rate = initial_exchange_rate
        self._shares: Dict[str, int] = {}
        # underlying * 10**18, не покрытый целым share
        self._remainder: Dict[str, int] = {}
        self._total_shares = 0
        self._accrued_reward: Dict[str, int] = {}

    # -------------------------------------------------------------------------
    # Exchange rate
    # -------------------------------------------------------------------------

    def exchange_rate(self) -> int:
        return self._exchange_rate

    def set_exchange_rate(self, rate: int) -> None:
        """
        Установка нового exchange rate (только рост).

        Raises:
            ValueError: Если rate меньше текущего
        """
        validate_positive_amount(rate, "rate")
        if rate < self._exchange_rate:
            raise ValueError(
                f"exchange rate must be non-decreasing: {rate} < {self._exchange_rate}"
            )

        self._exchange_rate = rate

        required = sum(self.balance_of_underlying(holder) for holder in self._shares)
        held = self.collateral.balance_of(self.address)
        if held < required:
            self.collateral.mint(self.address, required - held, caller=self.address)

        logger.debug("Lending pool %s exchange rate -> %d", self.address, rate)

    # -------------------------------------------------------------------------
    # Deposit / withdraw
    # -------------------------------------------------------------------------

    def deposit(self, depositor: str, amount: int) -> int:
        """Перевод amount коллатерала от depositor в пул; возвращает shares."""
        validate_amount(amount, "amount")
        rate = self._exchange_rate

        scaled = self._remainder.get(depositor, 0) + amount * FIXED_POINT_SCALE
        shares = scaled // rate

        self.collateral.transfer(depositor, self.address, amount)
        self._shares[depositor] = self._shares.get(depositor, 0) + shares
        self._remainder[depositor] = scaled - shares * rate
        self._total_shares += shares

        if self.reward_token is not None and self.reward_rate > 0:
            reward = mul_div_floor(amount, self.reward_rate, FIXED_POINT_SCALE)
            self._accrued_reward[depositor] = (
                self._accrued_reward.get(depositor, 0) + reward
            )

        return shares

    def withdraw(self, holder: str, shares: int) -> int:
        """
        Погашение shares; возвращает выплаченный коллатерал.

        Raises:
            InsufficientBalance: Если shares больше, чем у holder
        """
        validate_amount(shares, "shares")
        held = self._shares.get(holder, 0)
        if held < shares:
            raise InsufficientBalance("lending pool: redeem amount exceeds shares")

        amount = mul_div_floor(shares, self._exchange_rate, FIXED_POINT_SCALE)
        self._shares[holder] = held - shares
        self._total_shares -= shares
        self.collateral.transfer(self.address, holder, amount)
        return amount

    def withdraw_underlying(self, holder: str, amount: int) -> int:
        """
        Вывод ровно amount коллатерала; возвращает погашенные shares.

        Raises:
            InsufficientBalance: Если amount больше underlying-баланса holder
        """
        validate_amount(amount, "amount")
        rate = self._exchange_rate
        held = self._shares.get(holder, 0)

        scaled = held * rate + self._remainder.get(holder, 0)
        if scaled < amount * FIXED_POINT_SCALE:
            raise InsufficientBalance("lending pool: redeem amount exceeds balance")

        remaining = scaled - amount * FIXED_POINT_SCALE
        burned = held - remaining // rate
        self._shares[holder] = remaining // rate
        self._remainder[holder] = remaining % rate
        self._total_shares -= burned
        self.collateral.transfer(self.address, holder, amount)
        return burned

    def balance_of(self, holder: str) -> int:
        """Shares holder."""
        return self._shares.get(holder, 0)

    def balance_of_underlying(self, holder: str) -> int:
        scaled = self._shares.get(holder, 0) * self._exchange_rate
        return (scaled + self._remainder.get(holder, 0)) // FIXED_POINT_SCALE

    # -------------------------------------------------------------------------
    # Reward
    # -------------------------------------------------------------------------

    def reward_balance(self, holder: str) -> int:
        return self._accrued_reward.get(holder, 0)

    def claim_reward(self, holder: str) -> int:
        """Выплата накопленного reward на адрес holder."""
        amount = self._accrued_reward.pop(holder, 0)
        if amount > 0 and self.reward_token is not None:
            self.reward_token.mint(holder, amount, caller=self.address)
        return amount
