"""
Growcycle REST API.

Provides DRF ViewSets for:
- Recipe (read-only + timeline)
- Tray (read-only + lifecycle actions)
- SeedingRequest (create/read + complete, soak, cancel)
- Farm (read-only + today, week, plan, gaps)
"""
