"""
Errors — Таксономия ошибок ideamarket

Каждая ошибка прерывает операцию целиком, состояние не меняется.
Автоматических повторов нет: при SlippageExceeded вызывающая сторона
заново получает котировку и повторяет запрос.

Категории:
- NotFound: неизвестный токен/рынок
- InvalidParameters: некорректные параметры рынка/токена/операции
- Unauthorized: вызов admin-only операции не владельцем
- SlippageExceeded: цена ушла за границу maxCost/minPrice
- InsufficientFunds: нехватка баланса/allowance/резерва/donated
- NameRejected: имя не прошло верификатор или уже занято
"""


class IdeaMarketError(Exception):
    """Базовая ошибка ideamarket."""

    pass


# =============================================================================
# NOT FOUND
# =============================================================================


class NotFound(IdeaMarketError):
    pass


class UnknownToken(NotFound):
    pass


class MarketNotFound(NotFound):
    pass


# =============================================================================
# INVALID PARAMETERS
# =============================================================================


class InvalidParameters(IdeaMarketError):
    pass


class MarketExists(InvalidParameters):
    pass


class AlreadyInitialized(InvalidParameters):
    """Повторный вызов initialize()."""

    pass


class NotInitialized(InvalidParameters):
    """Операция до initialize()."""

    pass


# =============================================================================
# AUTHORIZATION / SLIPPAGE
# =============================================================================


class Unauthorized(IdeaMarketError):
    pass


class SlippageExceeded(IdeaMarketError):
    """
    Цена изменилась между котировкой и исполнением.

    Ожидаемая и восстановимая ошибка: нужно пере-котировать и повторить.
    """

    pass


# =============================================================================
# INSUFFICIENT FUNDS
# =============================================================================


class InsufficientFunds(IdeaMarketError):
    pass


class InsufficientAllowance(InsufficientFunds):
    pass


class InsufficientBalance(InsufficientFunds):
    pass


class InsufficientTokens(InsufficientFunds):
    pass


class InsufficientSupply(InsufficientFunds):
    """Продажа большего количества, чем текущий supply."""

    pass


class InsufficientCollateral(InsufficientFunds):
    pass


class InsufficientReserve(InsufficientFunds):
    pass


class InsufficientDonated(InsufficientFunds):
    pass


# =============================================================================
# NAME REJECTED
# =============================================================================


class NameRejected(IdeaMarketError):
    pass


class NameVerificationFailed(NameRejected):
    """
    Имя отклонено верификатором рынка ИЛИ уже занято в рынке.

    Оба случая сводятся к одной ошибке, чтобы не раскрывать,
    было ли имя невалидным или просто занятым.
    """

    pass
