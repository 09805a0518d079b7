"""
Growcycle Settings.

Supports two formats (dict takes priority):

    # Option 1: Dict
    GROWCYCLE = {
        "HOUR_STEP_POLICY": "ceil",
        "SEEDING_LOOKBACK_DAYS": 14,
    }

    # Option 2: Flat
    GROWCYCLE_HOUR_STEP_POLICY = "ceil"
    GROWCYCLE_SEEDING_LOOKBACK_DAYS = 14

All settings have defaults; no configuration is required.
"""

import threading

from django.conf import settings


# ── Defaults ──

HOUR_POLICY_CEIL = "ceil"
HOUR_POLICY_SAME_DAY = "same_day"

DEFAULTS = {
    # How an Hour-unit step advances the day cursor of a timeline.
    # "ceil": ceil(hours / 24) days. "same_day": no calendar days.
    "HOUR_STEP_POLICY": HOUR_POLICY_CEIL,
    # Max days the backward planner walks looking for a seeding weekday.
    "SEEDING_LOOKBACK_DAYS": 14,
    # Harvested trays older than this no longer count as deliverable supply.
    "SHELF_LIFE_DAYS": 3,
    "QUOTA_BACKEND": None,
}


# ── Accessors ──

_sentinel = object()


def get_setting(name, default=_sentinel):
    """
    Get a growcycle setting.

    Looks up in order:
    1. GROWCYCLE dict (e.g. GROWCYCLE = {"HOUR_STEP_POLICY": "..."})
    2. Flat setting (e.g. GROWCYCLE_HOUR_STEP_POLICY = "...")
    3. DEFAULTS
    """
    growcycle_dict = getattr(settings, "GROWCYCLE", {})
    if name in growcycle_dict:
        return growcycle_dict[name]

    flat_value = getattr(settings, f"GROWCYCLE_{name}", _sentinel)
    if flat_value is not _sentinel:
        return flat_value

    if default is not _sentinel:
        return default

    return DEFAULTS.get(name)


def get_hour_step_policy() -> str:
    """Return the configured hour-step policy, validated."""
    policy = get_setting("HOUR_STEP_POLICY")
    if policy not in (HOUR_POLICY_CEIL, HOUR_POLICY_SAME_DAY):
        from django.core.exceptions import ImproperlyConfigured

        raise ImproperlyConfigured(
            f"GROWCYCLE HOUR_STEP_POLICY must be '{HOUR_POLICY_CEIL}' or "
            f"'{HOUR_POLICY_SAME_DAY}', got {policy!r}"
        )
    return policy


_quota_backend_lock = threading.Lock()
_quota_backend_instance = None


def get_quota_backend():
    """
    Return the configured tray quota backend instance, or None.

    The quota backend may veto tray creation (e.g. subscription limits).
    """
    global _quota_backend_instance

    path = get_setting("QUOTA_BACKEND")
    if not path:
        return None

    if _quota_backend_instance is None:
        with _quota_backend_lock:
            if _quota_backend_instance is None:  # double-checked
                from django.utils.module_loading import import_string

                _quota_backend_instance = import_string(path)()

    return _quota_backend_instance


def reset_quota_backend() -> None:
    """Reset singleton (for tests)."""
    global _quota_backend_instance
    _quota_backend_instance = None
