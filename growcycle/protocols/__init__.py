"""
Growcycle Protocols.

Defines interfaces for external integrations.
"""

from growcycle.protocols.quota import QuotaDecision, TrayQuotaBackend

__all__ = [
    "TrayQuotaBackend",
    "QuotaDecision",
]
