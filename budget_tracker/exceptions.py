"""Error types raised by the budget tracker."""

from __future__ import annotations


class BudgetTrackerError(Exception):
    """Base class for all budget tracker errors."""


class StoreError(BudgetTrackerError):
    """The record store rejected or failed an operation."""


class StoreUnavailableError(StoreError):
    """The record store cannot be reached; callers should switch to the offline state."""


class InvalidInputError(BudgetTrackerError, ValueError):
    """User supplied a budget, amount, name or email that cannot be accepted."""


class EmailDeliveryError(BudgetTrackerError):
    """The outbound email relay is misconfigured or refused the message."""
