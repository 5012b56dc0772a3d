"""
NameVerifier — Проверка имён токенов

Каждый рынок хранит ссылку на один верификатор, выбранный при создании.
Верификатор — чистый предикат is_valid(name) без побочных эффектов.

DomainNoSubdomainNameVerifier: домен второго уровня в зоне .com без
поддоменов ("example.com" — да, "some.invalid.name" и "a.example.com" — нет).
"""

import re
from typing import Final, Protocol, runtime_checkable

# Метка домена: a-z, 0-9, '-', не начинается и не заканчивается на '-'
_LABEL_RE: Final = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")

DOMAIN_SUFFIX: Final[str] = ".com"


@runtime_checkable
class NameVerifier(Protocol):
    """Интерфейс верификатора имён."""

    def is_valid(self, name: str) -> bool: ...


class DomainNoSubdomainNameVerifier:
    """Имя вида '<label>.com' в нижнем регистре, без поддоменов."""

    def is_valid(self, name: str) -> bool:
        if not isinstance(name, str) or not name.endswith(DOMAIN_SUFFIX):
            return False

        label = name[: -len(DOMAIN_SUFFIX)]
        if "." in label:
            return False

        return _LABEL_RE.match(label) is not None


class AnyNameVerifier:
    """Принимает любое непустое имя без пробельных символов по краям."""

    def is_valid(self, name: str) -> bool:
        return isinstance(name, str) and len(name) > 0 and name == name.strip()
