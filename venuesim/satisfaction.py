# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# satisfaction.py
# -----------------------------------------------------------------------------
# Purpose:
#   Per-tick patience/satisfaction decay and the final satisfaction score
#   computed when a group pays.
#
# Design notes:
#   - Satisfaction is clamped to [0, 100] at every write; patience is not
#     clamped, crossing zero is what sends a group home early.
#   - Staff is resolved by id; a fired server simply contributes nothing.
#
# Usage:
#   from venuesim.satisfaction import update_patience, final_satisfaction
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
from typing import Optional

from .config import venue_type_cfg
from .entities import CustomerGroup, CustomerStatus, Venue, clamp

logger = logging.getLogger(__name__)

PATIENCE_DECAY = {
    CustomerStatus.ENTERING: 0.5,   # waiting to be seated
    CustomerStatus.SEATED: 0.2,
    CustomerStatus.ORDERING: 0.3,
    CustomerStatus.WAITING: 0.4,    # waiting for food/drinks
    CustomerStatus.EATING: 0.1,
    CustomerStatus.DRINKING: 0.1,
    CustomerStatus.PAYING: 0.3,
}

DEPARTURE_REASONS = {
    CustomerStatus.ENTERING: "long wait for a table",
    CustomerStatus.SEATED: "being ignored by staff",
    CustomerStatus.ORDERING: "slow service",
    CustomerStatus.WAITING: "long wait for their order",
}

ATMOSPHERE_TOLERANCE = 30


def atmosphere_penalty(customer: CustomerGroup, venue: Venue):
    """Music and lighting each cost patience/satisfaction beyond a 30-point mismatch."""
    for preferred, actual in (
        (customer.preferences.music, venue.settings.music_volume),
        (customer.preferences.lighting, venue.settings.lighting_level),
    ):
        excess = abs(preferred - actual) - ATMOSPHERE_TOLERANCE
        if excess > 0:
            customer.patience -= excess / 200.0
            customer.adjust_satisfaction(-excess / 100.0)


def leave_dissatisfied(ctx, customer: CustomerGroup, venue: Optional[Venue]):
    reason = DEPARTURE_REASONS.get(customer.status, "low patience")
    logger.warning("A group of %d left dissatisfied due to %s", customer.group_size, reason)
    if venue is not None:
        venue.stats.popularity = max(0.0, venue.stats.popularity - 0.2)
        venue.stats.customer_satisfaction = max(0.0, venue.stats.customer_satisfaction - 0.5)
    ctx.remove_customer(customer.cid)
    ctx.emit("departed_dissatisfied", customer, reason=reason, status=customer.status.value)


def update_patience(ctx, customer: CustomerGroup) -> bool:
    """
    Apply one tick of decay; returns False if the group walked out.

    Leaving groups are untouched.
    """
    if customer.status == CustomerStatus.LEAVING:
        return True
    customer.patience -= PATIENCE_DECAY[customer.status]
    venue = ctx.get_venue(customer.venue_id)
    if venue is not None:
        if venue.stats.cleanliness < 50:
            customer.patience -= (50 - venue.stats.cleanliness) / 100.0
        atmosphere_penalty(customer, venue)
    if customer.patience <= 0:
        leave_dissatisfied(ctx, customer, venue)
        return False
    return True


def value_for_money(ctx, customer: CustomerGroup, venue: Venue) -> float:
    """Ratio > 1 means the visit felt cheap for the quality received."""
    spent_per_person = customer.total_spending / customer.group_size
    expected = float(venue_type_cfg(ctx.cfg, venue.type).get("expected_spend", 20))
    quality = venue.stats.service_quality / 100.0
    ratio = (quality * expected) / max(0.1, spent_per_person)
    return ratio * (0.5 + customer.preferences.quality_importance / 100.0)


def final_satisfaction(ctx, customer: CustomerGroup, venue: Venue) -> float:
    satisfaction = customer.satisfaction

    staff = ctx.get_staff(customer.assigned_staff)
    if staff is not None:
        if staff.friendliness > 0:
            satisfaction += staff.friendliness / 2.0
        avg_skill = staff.average_skill()
        if avg_skill is not None:
            satisfaction += (avg_skill - 50) / 5.0

    satisfaction += (value_for_money(ctx, customer, venue) - 1.0) * 20.0
    satisfaction += (venue.stats.atmosphere - 50) / 5.0

    table = customer.assigned_table
    if table is not None and table.size == "large" and customer.group_size <= 2:
        satisfaction += 5

    satisfaction += 5 * sum(1 for o in customer.orders if customer.preferences.likes(o))

    customer.satisfaction = clamp(satisfaction)
    return customer.satisfaction


def satisfaction_rating(score: float) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 75:
        return "Very Good"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Average"
    if score >= 20:
        return "Poor"
    return "Terrible"


def average_live_satisfaction(ctx, venue_id: str) -> float:
    """Mean satisfaction of groups that have been served, else the venue stat."""
    served = [c for c in ctx.customers_at(venue_id) if c.status in (
        CustomerStatus.EATING, CustomerStatus.DRINKING, CustomerStatus.PAYING, CustomerStatus.LEAVING)]
    if served:
        return sum(c.satisfaction for c in served) / len(served)
    venue = ctx.get_venue(venue_id)
    return venue.stats.customer_satisfaction if venue is not None else 0.0
