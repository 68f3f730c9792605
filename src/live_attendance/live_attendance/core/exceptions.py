from __future__ import annotations

from typing import Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidTransitionError(ValidationError):
    """Raised when a clock-in/break/clock-out command is not legal from the current status."""


class InconsistentSessionError(ValidationError):
    """Raised when a session snapshot breaks its own invariants."""

    def __init__(self, employee_id: str, issues: Sequence[str]):
        self.employee_id = employee_id
        self.issues = list(issues)
        super().__init__(f"Session of {employee_id} is inconsistent: {'; '.join(self.issues)}")


class FetchError(DomainError):
    """Raised when the live session store cannot be read."""

