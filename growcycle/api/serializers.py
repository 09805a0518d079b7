"""
Growcycle API Serializers.
"""

from rest_framework import serializers

from growcycle.exceptions import GrowError
from growcycle.models import (
    Farm,
    LossReason,
    Recipe,
    RecipeStep,
    SeedingRequest,
    Tray,
)


class RecipeStepSerializer(serializers.ModelSerializer):
    """Serializer for RecipeStep model."""

    class Meta:
        model = RecipeStep
        fields = [
            "sequence_order",
            "action_kind",
            "duration",
            "duration_unit",
            "requires_weight",
            "weight_lbs",
            "water_type",
            "water_method",
            "water_frequency",
            "wet_seeds",
            "instructions",
        ]


class RecipeSerializer(serializers.ModelSerializer):
    """Serializer for Recipe model."""

    steps = RecipeStepSerializer(many=True, read_only=True)
    total_days = serializers.SerializerMethodField()

    class Meta:
        model = Recipe
        fields = [
            "uuid",
            "code",
            "name",
            "variety_name",
            "seed_quantity",
            "seed_quantity_unit",
            "steps",
            "total_days",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["uuid", "created_at", "updated_at"]

    def get_total_days(self, obj) -> int | None:
        # None when the stored steps do not compile
        try:
            return obj.total_days
        except GrowError:
            return None


class TraySerializer(serializers.ModelSerializer):
    """Serializer for Tray model."""

    recipe_code = serializers.CharField(source="recipe.code", read_only=True)
    recipe_name = serializers.CharField(source="recipe.name", read_only=True)
    ready_date = serializers.SerializerMethodField()

    class Meta:
        model = Tray
        fields = [
            "uuid",
            "code",
            "recipe",
            "recipe_code",
            "recipe_name",
            "sow_date",
            "ready_date",
            "status",
            "location",
            "customer",
            "yield_quantity",
            "harvested_at",
            "loss_reason",
            "loss_notes",
            "lost_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_ready_date(self, obj):
        try:
            return obj.ready_date.isoformat()
        except GrowError:
            return None


class SeedingRequestSerializer(serializers.ModelSerializer):
    """Serializer for SeedingRequest model."""

    recipe_code = serializers.CharField(source="recipe.code", read_only=True)
    remaining = serializers.IntegerField(read_only=True)

    class Meta:
        model = SeedingRequest
        fields = [
            "uuid",
            "farm",
            "recipe",
            "recipe_code",
            "quantity",
            "quantity_completed",
            "remaining",
            "seed_date",
            "soaked_at",
            "status",
            "source_type",
            "standing_order",
            "customer",
            "delivery_date",
            "delivery_dates",
            "notes",
            "created_at",
        ]
        read_only_fields = [
            "uuid",
            "recipe_code",
            "delivery_dates",
            "quantity_completed",
            "remaining",
            "soaked_at",
            "status",
            "source_type",
            "standing_order",
            "created_at",
        ]

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Must be greater than zero.")
        return value


class FarmSerializer(serializers.ModelSerializer):
    """Serializer for Farm model."""

    class Meta:
        model = Farm
        fields = ["uuid", "code", "name", "seeding_weekdays", "timezone"]
        read_only_fields = fields


# ── Action payloads ──


class EventActionSerializer(serializers.Serializer):
    """Payload for tray complete/skip actions."""

    day_offset = serializers.IntegerField(required=True)
    kind = serializers.CharField(required=True, help_text="Event kind (e.g. 'water', 'harvest')")
    yield_quantity = serializers.DecimalField(
        max_digits=10,
        decimal_places=3,
        required=False,
        help_text="Required when completing the harvest",
    )


class LoseSerializer(serializers.Serializer):
    """Payload for marking a tray lost."""

    reason = serializers.CharField(help_text="One of: " + ", ".join(LossReason.values))
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class SeedingCompleteSerializer(serializers.Serializer):
    """Payload for completing a seeding request."""

    quantity = serializers.IntegerField(required=False, min_value=1)
    location = serializers.CharField(required=False, allow_blank=True, default="")


class DateQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)


class WindowSerializer(serializers.Serializer):
    """Date window [start, end] for planning and gap queries."""

    start = serializers.DateField(required=True)
    end = serializers.DateField(required=True)

    def validate(self, attrs):
        if attrs["end"] < attrs["start"]:
            raise serializers.ValidationError("end must not be before start.")
        return attrs
