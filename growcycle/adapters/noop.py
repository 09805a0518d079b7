"""
Noop Quota Backend -- never limits tray creation.

Use this adapter for development or testing when no billing or capacity
system is wired in.

Configuration:
    GROWCYCLE = {
        "QUOTA_BACKEND": "growcycle.adapters.noop.NoopQuotaBackend",
    }
"""

from __future__ import annotations

from growcycle.protocols.quota import QuotaDecision


class NoopQuotaBackend:
    """No-operation implementation of the TrayQuotaBackend protocol."""

    def check(self, farm, count: int) -> QuotaDecision:
        return QuotaDecision(allowed=True)
