"""Exception types raised by orderpad services."""

from __future__ import annotations


class OrderpadError(Exception):
    """Base class for errors shown to staff."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigError(OrderpadError):
    """Backend settings are missing or unusable."""


class BackendError(OrderpadError):
    """A call to the hosted backend failed."""


class InvalidCredentialsError(OrderpadError):
    """Branch sign-in was rejected."""

    def __init__(self, message: str = "Invalid branch credentials") -> None:
        super().__init__(message)


class OrderValidationError(OrderpadError, ValueError):
    """Input rejected before any backend write."""


class SubmissionInProgressError(OrderpadError):
    """An order submission is already in flight."""

    def __init__(self, message: str = "Order is already being placed") -> None:
        super().__init__(message)


class StatusTransitionError(OrderpadError, ValueError):
    """Requested order status is unknown or has no next step."""


class RowFormatError(OrderpadError, ValueError):
    """A backend row could not be read into a model."""
