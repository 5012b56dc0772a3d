"""
InterestManager — Резерв коллатерала в пуле кредитования

Весь коллатерал торговли и пожертвований лежит в одном пуле (LendingAdapter).
Проценты взаимозаменяемы по всему пулу; разделены только ПРАВА требования:

- principal: коллатерал покупок, погашается только владельцем (Exchange)
  при продажах и выводе комиссий
- donated: коллатерал пожертвований, погашается только донором
  в пределах его непогашенного пожертвования

ФОРМУЛЫ:
    total_value   = pool.balance_of_underlying(manager) + idle_collateral
    accrued       = max(0, total_value - invested_principal - total_donated)
    redeemable(owner) = total_value - total_donated
    redeemable(donor) = min(donated_by[donor], total_value - invested_principal)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. redeem() никогда не трогает donated-часть пула
2. redeem_donated() никогда не опускает пул ниже invested_principal
3. redeem_donated() > donated_by[caller] всегда отклоняется,
   независимо от общего баланса пула
"""

from typing import Dict, Optional

from ideamarket.core.access import Ownable, serialized
from ideamarket.core.errors import (
    InsufficientAllowance,
    InsufficientCollateral,
    InsufficientDonated,
    InsufficientReserve,
)
from ideamarket.core.logging import get_logger
from ideamarket.core.math.fixed_point import validate_positive_amount
from ideamarket.ledger.fungible import FungibleLedger
from ideamarket.ledger.lending import LendingAdapter

logger = get_logger(__name__)


class InterestManager(Ownable):
    """
    Резерв с двумя реестрами требований: principal и donated.

    Two-phase construction: InterestManager() → initialize(...).
    """

    def __init__(self, address: str = "interest-manager"):
        super().__init__()
        self.address = address

        self.collateral: Optional[FungibleLedger] = None
        self.lending_adapter: Optional[LendingAdapter] = None
        self.reward_token: Optional[FungibleLedger] = None
        self.reward_recipient: Optional[str] = None

        self._invested_principal = 0
        self._total_donated = 0
        self._donated_by: Dict[str, int] = {}

    @serialized
    def initialize(
        self,
        owner: str,
        collateral: FungibleLedger,
        lending_adapter: LendingAdapter,
        reward_token: Optional[FungibleLedger] = None,
        reward_recipient: Optional[str] = None,
    ) -> None:
        """
        Args:
            owner: владелец (адрес Exchange)
            collateral: ledger коллатерала
            lending_adapter: пул кредитования
            reward_token: ledger reward-актива пула (optional)
            reward_recipient: фиксированный получатель reward
        """
        if reward_token is not None and not reward_recipient:
            raise ValueError("reward_recipient is required when reward_token is set")
        self._init_owner(owner)
        self.collateral = collateral
        self.lending_adapter = lending_adapter
        self.reward_token = reward_token
        self.reward_recipient = reward_recipient
        logger.info(
            "InterestManager initialized: owner=%s collateral=%s pool=%s",
            owner,
            collateral.address,
            lending_adapter.address,
        )

    # =========================================================================
    # PRINCIPAL
    # =========================================================================

    @serialized
    def invest(self, amount: int) -> int:
        """
        Вложение коллатерала, уже лежащего на адресе менеджера, в пул.

        Returns:
            Полученные shares

        Raises:
            InsufficientCollateral: Свободный баланс менеджера < amount
        """
        self._require_initialized()
        validate_positive_amount(amount, "amount")

        if self.collateral.balance_of(self.address) < amount:
            raise InsufficientCollateral("invest: not enough collateral")

        shares = self.lending_adapter.deposit(self.address, amount)
        self._invested_principal += amount
        logger.debug("Invested %d collateral for %d shares", amount, shares)
        return shares

    @serialized
    def redeem(self, caller: str, recipient: str, amount: int) -> int:
        """
        Вывод amount коллатерала из пула получателю (owner-only).

        Raises:
            Unauthorized: caller не владелец
            InsufficientReserve: Не-donated часть пула < amount
        """
        self._only_owner(caller)
        validate_positive_amount(amount, "amount")

        available = self.get_total_value() - self._total_donated
        if amount > available:
            raise InsufficientReserve("redeem: not enough reserve")

        self._release(amount)
        self.collateral.transfer(self.address, recipient, amount)
        self._invested_principal -= min(amount, self._invested_principal)

        logger.info("Redeemed %d collateral to %s", amount, recipient)
        return amount

    # =========================================================================
    # DONATED
    # =========================================================================

    @serialized
    def donate_interest(self, caller: str, amount: int) -> None:
        """
        Пожертвование: перевод amount от caller, вложение, учёт в donated.

        Raises:
            InsufficientAllowance: allowance caller → менеджер < amount
            InsufficientBalance: баланс caller < amount
        """
        self._require_initialized()
        validate_positive_amount(amount, "amount")

        if self.collateral.allowance(caller, self.address) < amount:
            raise InsufficientAllowance("donate_interest: not enough allowance")

        self.collateral.transfer_from(self.address, caller, self.address, amount)
        self.lending_adapter.deposit(self.address, amount)
        self._total_donated += amount
        self._donated_by[caller] = self._donated_by.get(caller, 0) + amount

        logger.info("Donation of %d collateral from %s", amount, caller)

    @serialized
    def redeem_donated(
        self, caller: str, amount: int, recipient: Optional[str] = None
    ) -> int:
        """
        Возврат пожертвованного коллатерала донору (или указанному получателю).

        Raises:
            InsufficientDonated: amount > непогашенного пожертвования caller
            InsufficientReserve: пул не покрывает amount сверх principal
        """
        self._require_initialized()
        validate_positive_amount(amount, "amount")

        if amount > self._donated_by.get(caller, 0) or amount > self._total_donated:
            raise InsufficientDonated("redeem_donated: not enough donated")

        if amount > self.get_total_value() - self._invested_principal:
            raise InsufficientReserve("redeem_donated: not enough reserve")

        payee = recipient or caller
        self._release(amount)
        self.collateral.transfer(self.address, payee, amount)
        self._donated_by[caller] -= amount
        self._total_donated -= amount

        logger.info("Redeemed %d donated collateral for %s to %s", amount, caller, payee)
        return amount

    # =========================================================================
    # REWARD
    # =========================================================================

    @serialized
    def withdraw_reward(self, caller: str) -> int:
        """
        Перевод всего reward-актива менеджера фиксированному получателю (owner-only).

        Returns:
            Переведённая сумма (0 без reward_token)
        """
        self._only_owner(caller)
        if self.reward_token is None:
            return 0

        self.lending_adapter.claim_reward(self.address)
        balance = self.reward_token.balance_of(self.address)
        if balance > 0:
            self.reward_token.transfer(self.address, self.reward_recipient, balance)

        logger.info("Reward of %d withdrawn to %s", balance, self.reward_recipient)
        return balance

    # =========================================================================
    # READ ACCESSORS
    # =========================================================================

    @property
    def invested_principal(self) -> int:
        return self._invested_principal

    @property
    def total_donated(self) -> int:
        return self._total_donated

    def get_donated(self, account: str) -> int:
        return self._donated_by.get(account, 0)

    def get_total_value(self) -> int:
        """Стоимость доли в пуле плюс свободный коллатерал менеджера."""
        self._require_initialized()
        pool_value = self.lending_adapter.balance_of_underlying(self.address)
        return pool_value + self.collateral.balance_of(self.address)

    def get_accrued_interest(self) -> int:
        return max(
            0, self.get_total_value() - self._invested_principal - self._total_donated
        )

    # =========================================================================
    # INTERNAL
    # =========================================================================

    def _release(self, amount: int) -> None:
        """Обеспечить amount свободного коллатерала на адресе менеджера."""
        idle = self.collateral.balance_of(self.address)
        if idle >= amount:
            return

        self.lending_adapter.withdraw_underlying(self.address, amount - idle)
