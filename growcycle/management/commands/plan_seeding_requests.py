"""
Plan seeding requests from standing orders.

Idempotent: re-running over an overlapping window only adds trays for
deliveries no request covers yet.

Usage:
    python manage.py plan_seeding_requests --farm north-farm
    python manage.py plan_seeding_requests --farm north-farm --start 2026-03-02 --days 28
"""

from datetime import date, timedelta

from django.core.management.base import BaseCommand, CommandError


class Command(BaseCommand):
    help = "Create seeding requests for standing-order deliveries in a date window"

    def add_arguments(self, parser):
        parser.add_argument("--farm", help="Farm code (default: every farm)")
        parser.add_argument(
            "--start",
            type=date.fromisoformat,
            help="First delivery date (default: farm-local today)",
        )
        parser.add_argument(
            "--days",
            type=int,
            default=28,
            help="Window length in days (default: 28)",
        )

    def handle(self, *args, **options):
        from growcycle.models import Farm
        from growcycle.service import Grow

        if options["days"] < 1:
            raise CommandError("--days must be at least 1")

        farms = Farm.objects.all()
        if options["farm"]:
            farms = farms.filter(code=options["farm"])
            if not farms.exists():
                raise CommandError(f"Farm '{options['farm']}' not found")

        for farm in farms:
            start = options["start"] or farm.today()
            end = start + timedelta(days=options["days"] - 1)
            result = Grow.plan(farm, start, end)

            self.stdout.write(
                self.style.SUCCESS(
                    f"{farm.code}: {len(result.created)} created, "
                    f"{len(result.extended)} extended, "
                    f"{len(result.skipped)} already planned ({start} .. {end})"
                )
            )
            for request in result.created:
                self.stdout.write(
                    f"   ✓ {request.seed_date} {request.quantity}x {request.recipe.code}"
                )
            for request in result.extended:
                self.stdout.write(
                    f"   + {request.seed_date} now {request.quantity}x {request.recipe.code}"
                )
            for failure in result.failures:
                self.stdout.write(
                    self.style.WARNING(
                        f"   ! standing order {failure.standing_order_id}: {failure.code}"
                    )
                )
