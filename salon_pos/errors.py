"""Error taxonomy shared by the queue, checkout and settlement code.

UI handlers catch `PosError`, log it and show the message in the status bar.
PIN-gated operations never let `AuthorizationError` escape: they return False
so the caller can re-prompt for a PIN.
"""

from __future__ import annotations


class PosError(Exception):
    """Base class for every error raised by the core."""


class ValidationError(PosError):
    """Duplicate/unknown ids, malformed amounts, order gaps, illegal transitions."""


class AuthorizationError(PosError):
    """PIN mismatch or insufficient role."""


class NotFoundError(PosError):
    """Operation on an absent staff id or split id."""


class OperationFailed(PosError):
    """The persistence layer rejected a call. Nothing was applied."""
