"""
Access — Двухфазная инициализация, владелец и сериализация вызовов

Компоненты создаются в неинициализированном состоянии и переводятся
в рабочее одним вызовом initialize(). Повторный вызов запрещён.

Владелец (admin) проверяется на каждом admin-only вызове.
Передача владения двухшаговая: transfer_ownership() предлагает,
accept_ownership() подтверждает. До подтверждения владелец прежний.

Все мутирующие методы выполняются под RLock (@serialized):
одна транзакция меняет состояние атомарно, без чередования.
"""

import functools
import threading
from typing import Callable, Optional, TypeVar

from ideamarket.core.errors import AlreadyInitialized, NotInitialized, Unauthorized
from ideamarket.core.logging import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable)


def serialized(method: F) -> F:
    """Выполнение метода под self._lock."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class Ownable:
    """
    Initializable + Ownable.

    Подклассы вызывают _init_owner(owner) из своего initialize().
    """

    def __init__(self, lock: Optional[threading.RLock] = None):
        self._lock = lock or threading.RLock()
        self._initialized = False
        self._owner: Optional[str] = None
        self._pending_owner: Optional[str] = None

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    @property
    def initialized(self) -> bool:
        return self._initialized

    # -------------------------------------------------------------------------
    # Инициализация
    # -------------------------------------------------------------------------

    def _init_owner(self, owner: str) -> None:
        if self._initialized:
            raise AlreadyInitialized(
                f"{type(self).__name__}: already initialized"
            )
        if not owner:
            raise ValueError("owner must be a non-empty address")
        self._owner = owner
        self._initialized = True

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise NotInitialized(f"{type(self).__name__}: not initialized")

    # -------------------------------------------------------------------------
    # Владение
    # -------------------------------------------------------------------------

    def get_owner(self) -> Optional[str]:
        return self._owner

    def get_pending_owner(self) -> Optional[str]:
        return self._pending_owner

    def _only_owner(self, caller: str) -> None:
        """Проверка, что caller — владелец."""
        self._require_initialized()
        if caller != self._owner:
            raise Unauthorized("Ownable: onlyOwner")

    @serialized
    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        """Шаг 1: владелец предлагает нового владельца."""
        self._only_owner(caller)
        if not new_owner:
            raise ValueError("new_owner must be a non-empty address")
        self._pending_owner = new_owner
        logger.info(
            "%s ownership transfer proposed: %s -> %s",
            type(self).__name__,
            self._owner,
            new_owner,
        )

    @serialized
    def accept_ownership(self, caller: str) -> None:
        """Шаг 2: предложенный владелец подтверждает."""
        self._require_initialized()
        if self._pending_owner is None or caller != self._pending_owner:
            raise Unauthorized("Ownable: caller is not the pending owner")
        previous = self._owner
        self._owner = caller
        self._pending_owner = None
        logger.info(
            "%s ownership transferred: %s -> %s", type(self).__name__, previous, caller
        )
