# Generated manually for growcycle 0.1.0

import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
import simple_history.models
from django.conf import settings
from django.db import migrations, models

import growcycle.models.farm


ACTION_KIND_CHOICES = [
    ("soak", "Soak"),
    ("seed", "Seed"),
    ("blackout", "Blackout"),
    ("germination", "Germination"),
    ("growing", "Growing"),
    ("harvest", "Harvest"),
    ("other", "Other"),
]
EVENT_KIND_CHOICES = [
    ("soak", "Soak seeds"),
    ("seed", "Seed tray"),
    ("wet_seeds", "Wet seeds"),
    ("blackout", "Start blackout"),
    ("germination", "Start germination"),
    ("uncover", "Uncover"),
    ("grow", "Move to light"),
    ("water", "Water"),
    ("other", "Other"),
    ("harvest", "Harvest"),
]
RESOLUTION_CHOICES = [("completed", "Completed"), ("skipped", "Skipped")]
TRAY_STATUS_CHOICES = [("active", "Active"), ("harvested", "Harvested"), ("lost", "Lost")]
LOSS_REASON_CHOICES = [
    ("fungal", "Fungal"),
    ("mold", "Mold"),
    ("contamination", "Contamination"),
    ("pest", "Pest"),
    ("operator_error", "Operator error"),
    ("other", "Other"),
]
SEED_UNIT_CHOICES = [("grams", "Grams"), ("oz", "Ounces")]
FREQUENCY_CHOICES = [("weekly", "Weekly"), ("biweekly", "Every two weeks")]
REQUEST_STATUS_CHOICES = [
    ("pending", "Pending"),
    ("completed", "Completed"),
    ("cancelled", "Cancelled"),
]
SOURCE_TYPE_CHOICES = [("manual", "Manual"), ("standing_order", "Standing order")]
WEEKDAY_CHOICES = [
    (0, "Monday"),
    (1, "Tuesday"),
    (2, "Wednesday"),
    (3, "Thursday"),
    (4, "Friday"),
    (5, "Saturday"),
    (6, "Sunday"),
]
HISTORY_TYPE_CHOICES = [("+", "Created"), ("~", "Changed"), ("-", "Deleted")]


def history_fields():
    return [
        ("history_id", models.AutoField(primary_key=True, serialize=False)),
        ("history_date", models.DateTimeField(db_index=True)),
        ("history_change_reason", models.CharField(max_length=100, null=True)),
        ("history_type", models.CharField(choices=HISTORY_TYPE_CHOICES, max_length=1)),
        (
            "history_user",
            models.ForeignKey(
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to=settings.AUTH_USER_MODEL,
            ),
        ),
    ]


def history_fk(to, verbose_name):
    return models.ForeignKey(
        blank=True,
        db_constraint=False,
        null=True,
        on_delete=django.db.models.deletion.DO_NOTHING,
        related_name="+",
        to=to,
        verbose_name=verbose_name,
    )


def history_options(name, plural):
    return {
        "verbose_name": f"historical {name}",
        "verbose_name_plural": f"historical {plural}",
        "ordering": ("-history_date", "-history_id"),
        "get_latest_by": ("history_date", "history_id"),
    }


def history_id():
    return models.BigIntegerField(auto_created=True, blank=True, db_index=True, verbose_name="ID")


def big_id():
    return models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CodeSequence",
            fields=[
                ("id", big_id()),
                ("prefix", models.CharField(max_length=50, unique=True, verbose_name="Prefix")),
                ("last_value", models.PositiveIntegerField(default=0, verbose_name="Last value")),
            ],
            options={
                "verbose_name": "Code sequence",
                "verbose_name_plural": "Code sequences",
                "db_table": "growcycle_code_sequence",
            },
        ),
        migrations.CreateModel(
            name="Farm",
            fields=[
                ("id", big_id()),
                ("uuid", models.UUIDField(default=uuid.uuid4, editable=False, unique=True, verbose_name="UUID")),
                ("code", models.SlugField(unique=True, verbose_name="Code")),
                ("name", models.CharField(max_length=200, verbose_name="Name")),
                (
                    "seeding_weekdays",
                    models.JSONField(
                        blank=True,
                        default=list,
                        help_text="0=Mon .. 6=Sun; empty allows every day",
                        validators=[growcycle.models.farm.validate_weekdays],
                        verbose_name="Seeding weekdays",
                    ),
                ),
                (
                    "low_stock_threshold",
                    models.PositiveIntegerField(
                        default=0,
                        help_text="Used by inventory, not by scheduling",
                        verbose_name="Low stock threshold",
                    ),
                ),
                (
                    "timezone",
                    models.CharField(
                        default="UTC",
                        help_text="Farm-local calendar used for all schedule dates",
                        max_length=64,
                        verbose_name="Time zone",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "Farm",
                "verbose_name_plural": "Farms",
                "db_table": "growcycle_farm",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", big_id()),
                ("name", models.CharField(max_length=200, verbose_name="Name")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                (
                    "farm",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="customers",
                        to="growcycle.farm",
                        verbose_name="Farm",
                    ),
                ),
            ],
            options={
                "verbose_name": "Customer",
                "verbose_name_plural": "Customers",
                "db_table": "growcycle_customer",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Recipe",
            fields=[
                ("id", big_id()),
                ("uuid", models.UUIDField(default=uuid.uuid4, editable=False, unique=True, verbose_name="UUID")),
                (
                    "code",
                    models.SlugField(
                        help_text="Identifier unique per farm (e.g. pea-shoots-v2)",
                        verbose_name="Code",
                    ),
                ),
                ("name", models.CharField(max_length=200, verbose_name="Name")),
                (
                    "variety_name",
                    models.CharField(
                        blank=True, help_text="Name on the seed bag", max_length=200, verbose_name="Variety"
                    ),
                ),
                (
                    "seed_quantity",
                    models.DecimalField(
                        decimal_places=2, default=Decimal("0"), max_digits=10, verbose_name="Seed per tray"
                    ),
                ),
                (
                    "seed_quantity_unit",
                    models.CharField(
                        choices=SEED_UNIT_CHOICES, default="grams", max_length=10, verbose_name="Seed unit"
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True, help_text="Recipe can be used for new trays", verbose_name="Active"
                    ),
                ),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "farm",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="recipes",
                        to="growcycle.farm",
                        verbose_name="Farm",
                    ),
                ),
            ],
            options={
                "verbose_name": "Recipe",
                "verbose_name_plural": "Recipes",
                "db_table": "growcycle_recipe",
                "ordering": ["name"],
                "indexes": [models.Index(fields=["farm", "is_active"], name="growcycle_recipe_active_idx")],
                "constraints": [
                    models.UniqueConstraint(fields=("farm", "code"), name="growcycle_recipe_farm_code_uniq")
                ],
            },
        ),
        migrations.CreateModel(
            name="RecipeStep",
            fields=[
                ("id", big_id()),
                ("sequence_order", models.PositiveSmallIntegerField(verbose_name="Order")),
                ("action_kind", models.CharField(choices=ACTION_KIND_CHOICES, max_length=20, verbose_name="Action")),
                ("duration", models.IntegerField(default=0, verbose_name="Duration")),
                (
                    "duration_unit",
                    models.CharField(
                        choices=[("days", "Days"), ("hours", "Hours")],
                        default="days",
                        max_length=10,
                        verbose_name="Unit",
                    ),
                ),
                ("requires_weight", models.BooleanField(default=False, verbose_name="Requires weight")),
                (
                    "weight_lbs",
                    models.DecimalField(
                        blank=True, decimal_places=2, max_digits=6, null=True, verbose_name="Weight (lbs)"
                    ),
                ),
                (
                    "water_type",
                    models.CharField(
                        choices=[("none", "None"), ("water", "Water"), ("nutrients", "Nutrients")],
                        default="none",
                        max_length=20,
                        verbose_name="Water type",
                    ),
                ),
                (
                    "water_method",
                    models.CharField(
                        blank=True,
                        choices=[("top", "Top water"), ("bottom", "Bottom water"), ("mist", "Mist")],
                        max_length=20,
                        verbose_name="Water method",
                    ),
                ),
                ("water_frequency", models.PositiveSmallIntegerField(default=0, verbose_name="Times per day")),
                ("wet_seeds", models.BooleanField(default=False, verbose_name="Wet seeds after sowing")),
                ("instructions", models.TextField(blank=True, verbose_name="Instructions")),
                (
                    "recipe",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="steps",
                        to="growcycle.recipe",
                        verbose_name="Recipe",
                    ),
                ),
            ],
            options={
                "verbose_name": "Recipe step",
                "verbose_name_plural": "Recipe steps",
                "db_table": "growcycle_recipe_step",
                "ordering": ["recipe", "sequence_order"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("recipe", "sequence_order"), name="growcycle_step_recipe_order_uniq"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="StandingOrder",
            fields=[
                ("id", big_id()),
                ("product_name", models.CharField(blank=True, max_length=200, verbose_name="Product")),
                ("quantity", models.PositiveIntegerField(verbose_name="Trays per delivery")),
                (
                    "delivery_weekdays",
                    models.JSONField(
                        default=list,
                        help_text="0=Mon .. 6=Sun",
                        validators=[growcycle.models.farm.validate_weekdays],
                        verbose_name="Delivery weekdays",
                    ),
                ),
                (
                    "frequency",
                    models.CharField(
                        choices=FREQUENCY_CHOICES, default="weekly", max_length=20, verbose_name="Frequency"
                    ),
                ),
                ("start_date", models.DateField(verbose_name="Start date")),
                ("end_date", models.DateField(blank=True, null=True, verbose_name="End date")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                (
                    "created_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now, editable=False, verbose_name="created at"
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="standing_orders",
                        to="growcycle.customer",
                        verbose_name="Customer",
                    ),
                ),
                (
                    "farm",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="standing_orders",
                        to="growcycle.farm",
                        verbose_name="Farm",
                    ),
                ),
                (
                    "recipe",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="standing_orders",
                        to="growcycle.recipe",
                        verbose_name="Recipe",
                    ),
                ),
            ],
            options={
                "verbose_name": "Standing order",
                "verbose_name_plural": "Standing orders",
                "db_table": "growcycle_standing_order",
                "ordering": ["created_at", "id"],
                "indexes": [models.Index(fields=["farm", "is_active"], name="growcycle_order_active_idx")],
            },
        ),
        migrations.CreateModel(
            name="SeedingRequest",
            fields=[
                ("id", big_id()),
                ("uuid", models.UUIDField(default=uuid.uuid4, editable=False, unique=True, verbose_name="UUID")),
                ("quantity", models.PositiveIntegerField(verbose_name="Trays")),
                ("quantity_completed", models.PositiveIntegerField(default=0, verbose_name="Trays sown")),
                ("seed_date", models.DateField(verbose_name="Seed date")),
                ("soaked_at", models.DateTimeField(blank=True, null=True, verbose_name="Soaked at")),
                (
                    "status",
                    models.CharField(
                        choices=REQUEST_STATUS_CHOICES, default="pending", max_length=20, verbose_name="Status"
                    ),
                ),
                (
                    "source_type",
                    models.CharField(
                        choices=SOURCE_TYPE_CHOICES, default="manual", max_length=20, verbose_name="Source"
                    ),
                ),
                ("delivery_date", models.DateField(blank=True, null=True, verbose_name="Delivery date")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="seeding_requests",
                        to="growcycle.customer",
                        verbose_name="Customer",
                    ),
                ),
                (
                    "farm",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="seeding_requests",
                        to="growcycle.farm",
                        verbose_name="Farm",
                    ),
                ),
                (
                    "recipe",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="seeding_requests",
                        to="growcycle.recipe",
                        verbose_name="Recipe",
                    ),
                ),
                (
                    "standing_order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="seeding_requests",
                        to="growcycle.standingorder",
                        verbose_name="Standing order",
                    ),
                ),
            ],
            options={
                "verbose_name": "Seeding request",
                "verbose_name_plural": "Seeding requests",
                "db_table": "growcycle_seeding_request",
                "ordering": ["seed_date", "id"],
                "indexes": [
                    models.Index(fields=["farm", "status", "seed_date"], name="growcycle_request_due_idx")
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "cancelled"), _negated=True),
                        fields=("standing_order", "seed_date"),
                        name="growcycle_request_order_date_uniq",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Tray",
            fields=[
                ("id", big_id()),
                ("uuid", models.UUIDField(default=uuid.uuid4, editable=False, unique=True, verbose_name="UUID")),
                (
                    "code",
                    models.CharField(
                        editable=False,
                        help_text="Auto-generated: TR-YYYY-NNNNN",
                        max_length=30,
                        unique=True,
                        verbose_name="Code",
                    ),
                ),
                ("sow_date", models.DateField(help_text="Day 0 of the recipe timeline", verbose_name="Sow date")),
                ("location", models.CharField(blank=True, help_text="Rack/shelf", max_length=100, verbose_name="Location")),
                (
                    "status",
                    models.CharField(
                        choices=TRAY_STATUS_CHOICES, default="active", max_length=20, verbose_name="Status"
                    ),
                ),
                ("harvested_at", models.DateTimeField(blank=True, null=True, verbose_name="Harvested at")),
                (
                    "harvested_on",
                    models.DateField(
                        blank=True,
                        help_text="Farm-local day of harvest (shelf life counts from it)",
                        null=True,
                        verbose_name="Harvest date",
                    ),
                ),
                (
                    "yield_quantity",
                    models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True, verbose_name="Yield"),
                ),
                ("lost_at", models.DateTimeField(blank=True, null=True, verbose_name="Lost at")),
                (
                    "loss_reason",
                    models.CharField(
                        blank=True, choices=LOSS_REASON_CHOICES, max_length=20, verbose_name="Loss reason"
                    ),
                ),
                ("loss_notes", models.TextField(blank=True, verbose_name="Loss notes")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                ("created_by", models.CharField(blank=True, max_length=150, verbose_name="Created by")),
                ("created_at", models.DateTimeField(auto_now_add=True, verbose_name="created at")),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        help_text="Reserved for this customer (optional)",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="trays",
                        to="growcycle.customer",
                        verbose_name="Customer",
                    ),
                ),
                (
                    "farm",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="trays",
                        to="growcycle.farm",
                        verbose_name="Farm",
                    ),
                ),
                (
                    "recipe",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="trays",
                        to="growcycle.recipe",
                        verbose_name="Recipe",
                    ),
                ),
                (
                    "seeding_request",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="trays",
                        to="growcycle.seedingrequest",
                        verbose_name="Seeding request",
                    ),
                ),
            ],
            options={
                "verbose_name": "Tray",
                "verbose_name_plural": "Trays",
                "db_table": "growcycle_tray",
                "ordering": ["sow_date", "id"],
                "indexes": [
                    models.Index(fields=["farm", "status"], name="growcycle_tray_farm_idx"),
                    models.Index(fields=["recipe", "status"], name="growcycle_tray_recipe_idx"),
                    models.Index(fields=["sow_date"], name="growcycle_tray_sow_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TrayEventMark",
            fields=[
                ("id", big_id()),
                (
                    "day_offset",
                    models.IntegerField(
                        help_text="Days from sowing (negative for pre-sowing soak)", verbose_name="Day"
                    ),
                ),
                ("action_kind", models.CharField(choices=EVENT_KIND_CHOICES, max_length=20, verbose_name="Action")),
                ("resolution", models.CharField(choices=RESOLUTION_CHOICES, max_length=20, verbose_name="Resolution")),
                ("resolved_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="Resolved at")),
                ("resolved_by", models.CharField(blank=True, max_length=150, verbose_name="Resolved by")),
                (
                    "tray",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="marks",
                        to="growcycle.tray",
                        verbose_name="Tray",
                    ),
                ),
            ],
            options={
                "verbose_name": "Tray event",
                "verbose_name_plural": "Tray events",
                "db_table": "growcycle_tray_event_mark",
                "ordering": ["tray", "day_offset", "action_kind"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("tray", "day_offset", "action_kind"), name="growcycle_mark_tray_event_uniq"
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="MaintenanceTask",
            fields=[
                ("id", big_id()),
                ("name", models.CharField(max_length=200, verbose_name="Name")),
                ("weekday", models.PositiveSmallIntegerField(choices=WEEKDAY_CHOICES, verbose_name="Weekday")),
                ("quantity", models.PositiveIntegerField(default=1, verbose_name="Quantity")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                (
                    "farm",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="maintenance_tasks",
                        to="growcycle.farm",
                        verbose_name="Farm",
                    ),
                ),
            ],
            options={
                "verbose_name": "Maintenance task",
                "verbose_name_plural": "Maintenance tasks",
                "db_table": "growcycle_maintenance_task",
                "ordering": ["weekday", "name"],
            },
        ),
        migrations.CreateModel(
            name="MaintenanceCompletion",
            fields=[
                ("id", big_id()),
                ("date", models.DateField(verbose_name="Date")),
                (
                    "resolution",
                    models.CharField(
                        choices=RESOLUTION_CHOICES, default="completed", max_length=20, verbose_name="Resolution"
                    ),
                ),
                ("resolved_at", models.DateTimeField(default=django.utils.timezone.now, verbose_name="Resolved at")),
                ("resolved_by", models.CharField(blank=True, max_length=150, verbose_name="Resolved by")),
                (
                    "task",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="completions",
                        to="growcycle.maintenancetask",
                        verbose_name="Task",
                    ),
                ),
            ],
            options={
                "verbose_name": "Maintenance completion",
                "verbose_name_plural": "Maintenance completions",
                "db_table": "growcycle_maintenance_completion",
                "constraints": [
                    models.UniqueConstraint(fields=("task", "date"), name="growcycle_maintenance_task_date_uniq")
                ],
            },
        ),
        # ── simple_history audit tables ──
        migrations.CreateModel(
            name="HistoricalRecipe",
            fields=[
                ("id", history_id()),
                ("uuid", models.UUIDField(db_index=True, default=uuid.uuid4, editable=False, verbose_name="UUID")),
                (
                    "code",
                    models.SlugField(
                        help_text="Identifier unique per farm (e.g. pea-shoots-v2)",
                        verbose_name="Code",
                    ),
                ),
                ("name", models.CharField(max_length=200, verbose_name="Name")),
                (
                    "variety_name",
                    models.CharField(
                        blank=True, help_text="Name on the seed bag", max_length=200, verbose_name="Variety"
                    ),
                ),
                (
                    "seed_quantity",
                    models.DecimalField(
                        decimal_places=2, default=Decimal("0"), max_digits=10, verbose_name="Seed per tray"
                    ),
                ),
                (
                    "seed_quantity_unit",
                    models.CharField(
                        choices=SEED_UNIT_CHOICES, default="grams", max_length=10, verbose_name="Seed unit"
                    ),
                ),
                (
                    "is_active",
                    models.BooleanField(
                        default=True, help_text="Recipe can be used for new trays", verbose_name="Active"
                    ),
                ),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                ("created_at", models.DateTimeField(blank=True, editable=False, verbose_name="created at")),
                ("updated_at", models.DateTimeField(blank=True, editable=False, verbose_name="updated at")),
                ("farm", history_fk("growcycle.farm", "Farm")),
                *history_fields(),
            ],
            options=history_options("Recipe", "Recipes"),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name="HistoricalStandingOrder",
            fields=[
                ("id", history_id()),
                ("product_name", models.CharField(blank=True, max_length=200, verbose_name="Product")),
                ("quantity", models.PositiveIntegerField(verbose_name="Trays per delivery")),
                (
                    "delivery_weekdays",
                    models.JSONField(
                        default=list,
                        help_text="0=Mon .. 6=Sun",
                        validators=[growcycle.models.farm.validate_weekdays],
                        verbose_name="Delivery weekdays",
                    ),
                ),
                (
                    "frequency",
                    models.CharField(
                        choices=FREQUENCY_CHOICES, default="weekly", max_length=20, verbose_name="Frequency"
                    ),
                ),
                ("start_date", models.DateField(verbose_name="Start date")),
                ("end_date", models.DateField(blank=True, null=True, verbose_name="End date")),
                ("is_active", models.BooleanField(default=True, verbose_name="Active")),
                (
                    "created_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now, editable=False, verbose_name="created at"
                    ),
                ),
                ("updated_at", models.DateTimeField(blank=True, editable=False, verbose_name="updated at")),
                ("customer", history_fk("growcycle.customer", "Customer")),
                ("farm", history_fk("growcycle.farm", "Farm")),
                ("recipe", history_fk("growcycle.recipe", "Recipe")),
                *history_fields(),
            ],
            options=history_options("Standing order", "Standing orders"),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name="HistoricalSeedingRequest",
            fields=[
                ("id", history_id()),
                ("uuid", models.UUIDField(db_index=True, default=uuid.uuid4, editable=False, verbose_name="UUID")),
                ("quantity", models.PositiveIntegerField(verbose_name="Trays")),
                ("quantity_completed", models.PositiveIntegerField(default=0, verbose_name="Trays sown")),
                ("seed_date", models.DateField(verbose_name="Seed date")),
                ("soaked_at", models.DateTimeField(blank=True, null=True, verbose_name="Soaked at")),
                (
                    "status",
                    models.CharField(
                        choices=REQUEST_STATUS_CHOICES, default="pending", max_length=20, verbose_name="Status"
                    ),
                ),
                (
                    "source_type",
                    models.CharField(
                        choices=SOURCE_TYPE_CHOICES, default="manual", max_length=20, verbose_name="Source"
                    ),
                ),
                ("delivery_date", models.DateField(blank=True, null=True, verbose_name="Delivery date")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                ("created_at", models.DateTimeField(blank=True, editable=False, verbose_name="created at")),
                ("updated_at", models.DateTimeField(blank=True, editable=False, verbose_name="updated at")),
                ("customer", history_fk("growcycle.customer", "Customer")),
                ("farm", history_fk("growcycle.farm", "Farm")),
                ("recipe", history_fk("growcycle.recipe", "Recipe")),
                ("standing_order", history_fk("growcycle.standingorder", "Standing order")),
                *history_fields(),
            ],
            options=history_options("Seeding request", "Seeding requests"),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
        migrations.CreateModel(
            name="HistoricalTray",
            fields=[
                ("id", history_id()),
                ("uuid", models.UUIDField(db_index=True, default=uuid.uuid4, editable=False, verbose_name="UUID")),
                (
                    "code",
                    models.CharField(
                        db_index=True,
                        editable=False,
                        help_text="Auto-generated: TR-YYYY-NNNNN",
                        max_length=30,
                        verbose_name="Code",
                    ),
                ),
                ("sow_date", models.DateField(help_text="Day 0 of the recipe timeline", verbose_name="Sow date")),
                ("location", models.CharField(blank=True, help_text="Rack/shelf", max_length=100, verbose_name="Location")),
                (
                    "status",
                    models.CharField(
                        choices=TRAY_STATUS_CHOICES, default="active", max_length=20, verbose_name="Status"
                    ),
                ),
                ("harvested_at", models.DateTimeField(blank=True, null=True, verbose_name="Harvested at")),
                (
                    "harvested_on",
                    models.DateField(
                        blank=True,
                        help_text="Farm-local day of harvest (shelf life counts from it)",
                        null=True,
                        verbose_name="Harvest date",
                    ),
                ),
                (
                    "yield_quantity",
                    models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True, verbose_name="Yield"),
                ),
                ("lost_at", models.DateTimeField(blank=True, null=True, verbose_name="Lost at")),
                (
                    "loss_reason",
                    models.CharField(
                        blank=True, choices=LOSS_REASON_CHOICES, max_length=20, verbose_name="Loss reason"
                    ),
                ),
                ("loss_notes", models.TextField(blank=True, verbose_name="Loss notes")),
                ("notes", models.TextField(blank=True, verbose_name="Notes")),
                ("created_by", models.CharField(blank=True, max_length=150, verbose_name="Created by")),
                ("created_at", models.DateTimeField(blank=True, editable=False, verbose_name="created at")),
                ("updated_at", models.DateTimeField(blank=True, editable=False, verbose_name="updated at")),
                ("customer", history_fk("growcycle.customer", "Customer")),
                ("farm", history_fk("growcycle.farm", "Farm")),
                ("recipe", history_fk("growcycle.recipe", "Recipe")),
                ("seeding_request", history_fk("growcycle.seedingrequest", "Seeding request")),
                *history_fields(),
            ],
            options=history_options("Tray", "Trays"),
            bases=(simple_history.models.HistoricalChanges, models.Model),
        ),
    ]
