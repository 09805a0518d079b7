"""
Growcycle Signals.

Integration points for the rest of the farm system (inventory, notifications).
The engine never calls those systems directly.

Signals:
    tray_created: A tray was sown from a seeding request
    tray_harvested: Harvest completed, yield recorded
    tray_lost: Tray marked lost (terminal)
    seeding_requests_planned: Backward planner created or extended seeding requests
"""

from django.dispatch import Signal

# Sent by SeedingRequest.complete() for each new tray
# Args: tray, seeding_request (may be None), user
tray_created = Signal()

# Sent when the harvest event of a tray is completed
# Args: tray, yield_quantity, user
tray_harvested = Signal()

# Sent when a tray is marked lost
# Args: tray, reason, notes, user
tray_lost = Signal()

# Sent once per planning run that created or extended at least one request
# Args: farm, requests (created SeedingRequests), extended (grown SeedingRequests)
seeding_requests_planned = Signal()

__all__ = ["tray_created", "tray_harvested", "tray_lost", "seeding_requests_planned"]
