"""
Growcycle app configuration.
"""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class GrowcycleConfig(AppConfig):
    """Growcycle application configuration."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "growcycle"
    verbose_name = _("Grow cycle")

    def ready(self):
        """Fail fast on a misconfigured hour-step policy."""
        from growcycle.conf import get_hour_step_policy

        get_hour_step_policy()
