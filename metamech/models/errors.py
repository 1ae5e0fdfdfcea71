"""Exception types raised by the checkout and catalog layers."""

from __future__ import annotations


class MetamechError(Exception):
    """Base class for errors raised by this package."""


class UnknownPlanError(MetamechError, KeyError):
    def __init__(self, plan_id: str):
        super().__init__(plan_id)
        self.plan_id = plan_id

    def __str__(self) -> str:
        return f"Unknown plan: {self.plan_id!r}"


class WizardLockedError(MetamechError):
    """Raised when order details are edited after they were confirmed."""


class InvalidTransitionError(MetamechError):
    """Raised when an operation is not allowed in the current wizard step."""
