"""
Growcycle Adapters.

Implementations of protocols for external systems.
"""

from growcycle.adapters.noop import NoopQuotaBackend

__all__ = ["NoopQuotaBackend"]
