"""
venuesim package initializer.

This package contains the customer lifecycle engine for a hospitality venue
game: the game clock, arrival generator, lifecycle state machine,
satisfaction/patience model, order economics, staff/table policies and
metric collection.
"""
__all__ = [
    "clock", "entities", "config", "context", "arrivals", "policies",
    "orders", "satisfaction", "lifecycle", "metrics", "simulation",
]
