"""
Growcycle API ViewSets.

GrowError responses carry GrowError.as_dict() as body: HTTP 409 for
ALREADY_RESOLVED (a lost race or a double submit), 400 otherwise.
"""

from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from growcycle.exceptions import ALREADY_RESOLVED, GrowError
from growcycle.models import Farm, Recipe, SeedingRequest, Tray
from growcycle.service import Grow

from .serializers import (
    DateQuerySerializer,
    EventActionSerializer,
    FarmSerializer,
    LoseSerializer,
    RecipeSerializer,
    SeedingCompleteSerializer,
    SeedingRequestSerializer,
    TraySerializer,
    WindowSerializer,
)


def _error_response(error: GrowError) -> Response:
    if error.code == ALREADY_RESOLVED:
        return Response(error.as_dict(), status=status.HTTP_409_CONFLICT)
    return Response(error.as_dict(), status=status.HTTP_400_BAD_REQUEST)


def _outcomes(result) -> dict:
    return {
        "succeeded": len(result.succeeded),
        "failed": len(result.failed),
        "outcomes": [
            {
                "tray_id": o.tray_id,
                "day_offset": o.day_offset,
                "kind": o.kind,
                "status": o.status,
            }
            for o in result.outcomes
        ],
    }


class RecipeViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for Recipe (read-only).

    list: List all active recipes
    retrieve: Get a specific recipe by UUID
    timeline: Compiled timeline of the recipe
    """

    permission_classes = [IsAuthenticated]
    queryset = Recipe.objects.filter(is_active=True).prefetch_related("steps")
    serializer_class = RecipeSerializer
    lookup_field = "uuid"

    @action(detail=True, methods=["get"])
    def timeline(self, request, uuid=None):
        """
        GET /api/growcycle/recipes/{uuid}/timeline/
        """
        recipe = self.get_object()
        try:
            timeline = recipe.timeline()
        except GrowError as e:
            return _error_response(e)
        return Response(
            {
                "total_days": timeline.total_days,
                "soak_lead_days": timeline.soak_lead_days,
                "harvest_window_days": timeline.harvest_window_days,
                "events": [event.as_dict() for event in timeline],
            }
        )


class TrayViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for Tray.

    list: List trays
    retrieve: Get a tray by UUID
    due: Events due today and overdue
    complete / skip: Resolve one event
    skip_overdue: Skip every overdue event
    lose: Mark the tray lost
    """

    permission_classes = [IsAuthenticated]
    queryset = Tray.objects.select_related("recipe", "farm")
    serializer_class = TraySerializer
    lookup_field = "uuid"

    @action(detail=True, methods=["get"])
    def due(self, request, uuid=None):
        """
        GET /api/growcycle/trays/{uuid}/due/?date=2026-03-05
        """
        tray = self.get_object()
        query = DateQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            due = Grow.due_events(tray, query.validated_data.get("date"))
        except GrowError as e:
            return _error_response(e)
        return Response(
            {
                "today": [event.as_dict() for event in due.today],
                "overdue": [event.as_dict() for event in due.overdue],
            }
        )

    @action(detail=True, methods=["post"])
    def complete(self, request, uuid=None):
        """
        Complete an event.

        POST /api/growcycle/trays/{uuid}/complete/
        {
            "day_offset": 8,
            "kind": "harvest",
            "yield_quantity": 1.25  // harvest only
        }
        """
        tray = self.get_object()
        serializer = EventActionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            Grow.complete(
                tray,
                data["day_offset"],
                data["kind"],
                user=request.user,
                yield_quantity=data.get("yield_quantity"),
            )
        except GrowError as e:
            return _error_response(e)
        return Response({"status": tray.status, "resolution": "completed"})

    @action(detail=True, methods=["post"])
    def skip(self, request, uuid=None):
        """
        POST /api/growcycle/trays/{uuid}/skip/
        {"day_offset": 3, "kind": "water"}
        """
        tray = self.get_object()
        serializer = EventActionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            Grow.skip(tray, data["day_offset"], data["kind"], user=request.user)
        except GrowError as e:
            return _error_response(e)
        return Response({"status": tray.status, "resolution": "skipped"})

    @action(detail=True, methods=["post"], url_path="skip-overdue")
    def skip_overdue(self, request, uuid=None):
        """
        POST /api/growcycle/trays/{uuid}/skip-overdue/
        {"date": "2026-03-05"}  // optional
        """
        tray = self.get_object()
        query = DateQuerySerializer(data=request.data)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            result = Grow.skip_all_overdue(
                tray, query.validated_data.get("date"), user=request.user
            )
        except GrowError as e:
            return _error_response(e)
        return Response(_outcomes(result))

    @action(detail=True, methods=["post"])
    def lose(self, request, uuid=None):
        """
        POST /api/growcycle/trays/{uuid}/lose/
        {"reason": "mold", "notes": "rack 3"}
        """
        tray = self.get_object()
        serializer = LoseSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            Grow.mark_lost(
                tray,
                serializer.validated_data["reason"],
                notes=serializer.validated_data["notes"],
                user=request.user,
            )
        except GrowError as e:
            return _error_response(e)
        return Response({"status": tray.status, "loss_reason": tray.loss_reason})


class SeedingRequestViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    ViewSet for SeedingRequest.

    create: Manual seeding request
    complete: Sow trays
    soak: Record soaking
    cancel: Cancel a pending request
    """

    permission_classes = [IsAuthenticated]
    queryset = SeedingRequest.objects.select_related("recipe", "farm")
    serializer_class = SeedingRequestSerializer
    lookup_field = "uuid"

    @action(detail=True, methods=["post"])
    def complete(self, request, uuid=None):
        """
        POST /api/growcycle/seeding-requests/{uuid}/complete/
        {"quantity": 2, "location": "Rack A"}  // both optional
        """
        seeding_request = self.get_object()
        serializer = SeedingCompleteSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            trays = Grow.complete_seeding(
                seeding_request,
                serializer.validated_data.get("quantity"),
                user=request.user,
                location=serializer.validated_data["location"],
            )
        except GrowError as e:
            return _error_response(e)
        return Response(
            {
                "status": seeding_request.status,
                "quantity_completed": seeding_request.quantity_completed,
                "tray_codes": [tray.code for tray in trays],
            },
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=["post"])
    def soak(self, request, uuid=None):
        """POST /api/growcycle/seeding-requests/{uuid}/soak/"""
        seeding_request = self.get_object()
        try:
            Grow.mark_soaked(seeding_request, user=request.user)
        except GrowError as e:
            return _error_response(e)
        return Response({"status": seeding_request.status, "soaked_at": seeding_request.soaked_at})

    @action(detail=True, methods=["post"])
    def cancel(self, request, uuid=None):
        """
        POST /api/growcycle/seeding-requests/{uuid}/cancel/
        {"reason": "Order paused"}  // optional
        """
        seeding_request = self.get_object()
        try:
            Grow.cancel_request(
                seeding_request, request.data.get("reason", ""), user=request.user
            )
        except GrowError as e:
            return _error_response(e)
        return Response({"status": seeding_request.status})


class FarmViewSet(viewsets.ReadOnlyModelViewSet):
    """
    ViewSet for Farm scheduling queries.

    today: Daily task buckets
    week: Seven daily projections
    plan: Backward-plan seeding requests for a window
    gaps: Supply vs demand per customer/recipe/date
    """

    permission_classes = [IsAuthenticated]
    queryset = Farm.objects.all()
    serializer_class = FarmSerializer
    lookup_field = "code"

    @action(detail=True, methods=["get"])
    def today(self, request, code=None):
        """GET /api/growcycle/farms/{code}/today/?date=2026-03-05"""
        farm = self.get_object()
        query = DateQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        bucket = Grow.today(farm, query.validated_data.get("date"))
        return Response(bucket.as_dict())

    @action(detail=True, methods=["get"])
    def week(self, request, code=None):
        """GET /api/growcycle/farms/{code}/week/?date=2026-03-02"""
        farm = self.get_object()
        query = DateQuerySerializer(data=request.query_params)
        if not query.is_valid():
            return Response(query.errors, status=status.HTTP_400_BAD_REQUEST)

        buckets = Grow.week(farm, query.validated_data.get("date"))
        return Response([bucket.as_dict() for bucket in buckets])

    @action(detail=True, methods=["post"])
    def plan(self, request, code=None):
        """
        POST /api/growcycle/farms/{code}/plan/
        {"start": "2026-03-02", "end": "2026-03-29"}
        """
        farm = self.get_object()
        window = WindowSerializer(data=request.data)
        if not window.is_valid():
            return Response(window.errors, status=status.HTTP_400_BAD_REQUEST)

        result = Grow.plan(farm, window.validated_data["start"], window.validated_data["end"])
        return Response(
            {
                "created": SeedingRequestSerializer(result.created, many=True).data,
                "extended": SeedingRequestSerializer(result.extended, many=True).data,
                "skipped": [
                    {"standing_order": order_id, "seed_date": seed_date}
                    for order_id, seed_date in result.skipped
                ],
                "failures": [
                    {
                        "standing_order": failure.standing_order_id,
                        "code": failure.code,
                        "delivery_date": failure.delivery_date,
                        **failure.details,
                    }
                    for failure in result.failures
                ],
            }
        )

    @action(detail=True, methods=["get"])
    def gaps(self, request, code=None):
        """GET /api/growcycle/farms/{code}/gaps/?start=2026-03-02&end=2026-03-08"""
        farm = self.get_object()
        window = WindowSerializer(data=request.query_params)
        if not window.is_valid():
            return Response(window.errors, status=status.HTTP_400_BAD_REQUEST)

        reports = Grow.gaps(farm, window.validated_data["start"], window.validated_data["end"])
        return Response([report.as_dict() for report in reports])
