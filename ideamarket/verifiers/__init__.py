"""Name verifiers — подключаемые предикаты для имён токенов."""

from .name_verifier import AnyNameVerifier, DomainNoSubdomainNameVerifier, NameVerifier

__all__ = [
    "NameVerifier",
    "DomainNoSubdomainNameVerifier",
    "AnyNameVerifier",
]
