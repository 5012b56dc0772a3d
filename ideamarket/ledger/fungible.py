"""
FungibleLedger — Интерфейс и in-memory реализация fungible-токена

Один ledger на idea-токен (mint/burn только Exchange) и один для
коллатерала. Семантика ERC20: balance, totalSupply, transfer,
approve/allowance, transferFrom.

transfer_from проверяет allowance, затем баланс; при нехватке
бросает InsufficientAllowance / InsufficientBalance без изменений состояния.
"""

from typing import Dict, Optional, Protocol, Tuple, runtime_checkable

from ideamarket.core.errors import InsufficientAllowance, InsufficientBalance, Unauthorized
from ideamarket.core.math.fixed_point import FIXED_POINT_DECIMALS, validate_amount


@runtime_checkable
class FungibleLedger(Protocol):
    """Интерфейс fungible-ledger."""

    address: str

    def mint(self, to: str, amount: int, caller: Optional[str] = None) -> None: ...

    def burn(self, account: str, amount: int, caller: Optional[str] = None) -> None: ...

    def balance_of(self, account: str) -> int: ...

    def total_supply(self) -> int: ...

    def transfer(self, sender: str, to: str, amount: int) -> None: ...

    def approve(self, owner: str, spender: str, amount: int) -> None: ...

    def allowance(self, owner: str, spender: str) -> int: ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None: ...


class InMemoryLedger:
    """
    In-memory fungible ledger.

    Если задан owner, mint/burn разрешены только ему (idea-токены принадлежат
    Exchange). Без owner mint открыт (тестовый коллатерал).
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        address: Optional[str] = None,
        owner: Optional[str] = None,
        decimals: int = FIXED_POINT_DECIMALS,
    ):
        self.name = name
        self.symbol = symbol
        self.address = address or f"ledger:{symbol}"
        self.owner = owner
        self.decimals = decimals

        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}
        self._total_supply = 0

    def __repr__(self) -> str:
        return f"InMemoryLedger(symbol={self.symbol!r}, address={self.address!r})"

    # -------------------------------------------------------------------------
    # Supply
    # -------------------------------------------------------------------------

    def _only_owner(self, caller: Optional[str]) -> None:
        if self.owner is not None and caller != self.owner:
            raise Unauthorized(f"{self.symbol}: caller is not the token owner")

    def mint(self, to: str, amount: int, caller: Optional[str] = None) -> None:
        validate_amount(amount, "amount")
        self._only_owner(caller)
        self._balances[to] = self._balances.get(to, 0) + amount
        self._total_supply += amount

    def burn(self, account: str, amount: int, caller: Optional[str] = None) -> None:
        validate_amount(amount, "amount")
        self._only_owner(caller)
        balance = self._balances.get(account, 0)
        if balance < amount:
            raise InsufficientBalance(f"{self.symbol}: burn amount exceeds balance")
        self._balances[account] = balance - amount
        self._total_supply -= amount

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def total_supply(self) -> int:
        return self._total_supply

    # -------------------------------------------------------------------------
    # Transfers
    # -------------------------------------------------------------------------

    def transfer(self, sender: str, to: str, amount: int) -> None:
        validate_amount(amount, "amount")
        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise InsufficientBalance(f"{self.symbol}: transfer amount exceeds balance")
        self._balances[sender] = balance - amount
        self._balances[to] = self._balances.get(to, 0) + amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        validate_amount(amount, "amount")
        self._allowances[(owner, spender)] = amount

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> None:
        validate_amount(amount, "amount")
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise InsufficientAllowance(
                f"{self.symbol}: transfer amount exceeds allowance"
            )
        # transfer() проверяет баланс до любых изменений
        self.transfer(owner, to, amount)
        self._allowances[(owner, spender)] = allowed - amount
