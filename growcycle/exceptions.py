"""
Growcycle Exceptions.

All growcycle errors are raised as GrowError for consistent handling.
"""

from typing import Any


class GrowError(Exception):
    """
    Base exception for all Growcycle errors.

    Usage:
        raise GrowError('ALREADY_RESOLVED', tray='TR-2026-00001', day_offset=3)

    Attributes:
        code: Error code (INVALID_RECIPE, UNKNOWN_EVENT, etc.)
        details: Additional context as keyword arguments
    """

    def __init__(self, code: str, **details: Any):
        self.code = code
        self.details = details
        message = f"{code}: {details}" if details else code
        super().__init__(message)

    def as_dict(self) -> dict:
        """Return error as dictionary for API responses."""
        return {"code": self.code, **self.details}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"GrowError({self.code}: {details_str})"
        return f"GrowError({self.code})"


# Error codes
# INVALID_RECIPE: Steps have gaps/duplicates, negative durations, or Harvest not last
# RECIPE_IN_USE: Steps cannot change while active trays grow from the recipe
# UNKNOWN_EVENT: (day_offset, kind) is not in the tray's compiled timeline
# ALREADY_RESOLVED: Event already completed/skipped (or lost a race)
# INVALID_TRANSITION: Tray state change not allowed (terminal state, harvest skip)
# YIELD_REQUIRED: Harvest completion without a yield
# INVALID_LOSS_REASON: Loss reason missing or outside the fixed enum
# RECIPE_NOT_LINKED: Standing order product has no recipe
# NO_ALLOWED_SEEDING_DAY: Backward search exceeded the lookback window
# INVALID_QUANTITY: Quantity must be positive
# INVALID_STATUS: Seeding request status does not allow the operation
# QUOTA_EXCEEDED: Tray quota backend refused tray creation

INVALID_RECIPE = "INVALID_RECIPE"
RECIPE_IN_USE = "RECIPE_IN_USE"
UNKNOWN_EVENT = "UNKNOWN_EVENT"
ALREADY_RESOLVED = "ALREADY_RESOLVED"
INVALID_TRANSITION = "INVALID_TRANSITION"
YIELD_REQUIRED = "YIELD_REQUIRED"
INVALID_LOSS_REASON = "INVALID_LOSS_REASON"
RECIPE_NOT_LINKED = "RECIPE_NOT_LINKED"
NO_ALLOWED_SEEDING_DAY = "NO_ALLOWED_SEEDING_DAY"
INVALID_QUANTITY = "INVALID_QUANTITY"
INVALID_STATUS = "INVALID_STATUS"
QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
