"""
Tray Quota Protocol.

Lets the host application veto tray creation (subscription tiers, rack
capacity) without growcycle knowing about billing or facilities.

Configuration:
    GROWCYCLE = {
        "QUOTA_BACKEND": "myproject.billing.TrayQuota",
    }
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class QuotaDecision:
    """Answer of a quota check."""

    allowed: bool
    limit: int | None = None
    in_use: int | None = None
    message: str | None = None


@runtime_checkable
class TrayQuotaBackend(Protocol):
    """Decides whether a farm may create more trays."""

    def check(self, farm, count: int) -> QuotaDecision:
        """
        Check whether `count` new trays fit the farm's quota.

        Args:
            farm: Farm instance
            count: Number of trays about to be created

        Returns:
            QuotaDecision (allowed=False blocks creation with QUOTA_EXCEEDED)
        """
        ...
