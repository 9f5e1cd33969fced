from __future__ import annotations


class StorefrontError(Exception):
    """Базовая ошибка пакета storefront."""


class OfferCodeError(StorefrontError):
    def __init__(self, code: str | None, reason: str):
        super().__init__(f"Код {code!r}: {reason}")
        self.code = code
        self.reason = reason


class UnknownUsagePolicyError(StorefrontError, ValueError):
    pass
