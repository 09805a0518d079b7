"""
Per-year counters behind tray codes.

Trays are labelled TR-<sow year>-NNNNN. The number restarts each year and
is taken from a locked counter row, so two seeding sessions committing at
once never print the same label.
"""

from django.db import models, transaction
from django.utils.translation import gettext_lazy as _

TRAY_PREFIX = "TR"


class CodeSequence(models.Model):
    """
    Last number handed out for one label prefix, e.g. "TR-2026" at 42.

    Rows are created lazily on first use and only ever move forward; a
    code burned by a rolled-back seeding is not reused.
    """

    prefix = models.CharField(
        max_length=50,
        unique=True,
        verbose_name=_("Prefix"),
    )
    last_value = models.PositiveIntegerField(
        default=0,
        verbose_name=_("Last value"),
    )

    class Meta:
        db_table = "growcycle_code_sequence"
        verbose_name = _("Code sequence")
        verbose_name_plural = _("Code sequences")

    def __str__(self) -> str:
        return f"{self.prefix}: {self.last_value}"

    @classmethod
    def next_value(cls, prefix: str) -> int:
        """Bump the counter for ``prefix`` under a row lock and return it."""
        with transaction.atomic():
            seq, _created = cls.objects.select_for_update().get_or_create(
                prefix=prefix, defaults={"last_value": 0}
            )
            seq.last_value += 1
            seq.save(update_fields=["last_value"])
            return seq.last_value

    @classmethod
    def next_code(cls, prefix: str, width: int = 5) -> str:
        return f"{prefix}-{cls.next_value(prefix):0{width}d}"

    @classmethod
    def next_tray_code(cls, sow_date) -> str:
        """Label for a tray sown on ``sow_date``, e.g. "TR-2026-00043"."""
        return cls.next_code(f"{TRAY_PREFIX}-{sow_date.year}")
