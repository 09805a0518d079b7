# Generated manually for growcycle 0.1.0

from django.db import migrations, models


def delivery_dates_field():
    return models.JSONField(
        blank=True,
        default=list,
        help_text="ISO dates of the standing-order deliveries this request covers",
        verbose_name="Delivery dates",
    )


def backfill_delivery_dates(apps, schema_editor):
    SeedingRequest = apps.get_model("growcycle", "SeedingRequest")
    requests = SeedingRequest.objects.filter(
        standing_order__isnull=False, delivery_date__isnull=False
    )
    for request in requests.iterator():
        request.delivery_dates = [request.delivery_date.isoformat()]
        request.save(update_fields=["delivery_dates"])


class Migration(migrations.Migration):
    dependencies = [
        ("growcycle", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="seedingrequest",
            name="delivery_dates",
            field=delivery_dates_field(),
        ),
        migrations.AddField(
            model_name="historicalseedingrequest",
            name="delivery_dates",
            field=delivery_dates_field(),
        ),
        migrations.RunPython(backfill_delivery_dates, migrations.RunPython.noop),
    ]
