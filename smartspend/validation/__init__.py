"""Entry validation package."""

from smartspend.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
