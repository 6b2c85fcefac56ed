"""Core business logic layer.

Subpackages:
- catalog: master items, brand variants, price history and legacy migration
- lists: shopping lists built from catalog snapshots
- session: the active trip and the archive of finished trips
- sharing: the portable .shoplist format
- reporting: price statistics and trip summaries
"""
__all__ = ["catalog", "lists", "session", "sharing", "reporting"]
