# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# policies.py
# -----------------------------------------------------------------------------
# Purpose:
#   Resource policies used by the lifecycle: table acquisition and staff
#   assignment, plus the redistribution run when staff are hired or fired.
#
# Design notes:
#   - Keep the decisions as small functions (policy -> decision) so they can
#     be tested without running the engine.
#   - Staff load is counted live from the active customers, so assignments
#     made earlier in the same tick are visible to later groups.
#
# Usage:
#   from venuesim.policies import assign_staff, try_acquire_table
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
from typing import Dict, List, Optional

from .config import venue_type_cfg
from .entities import CustomerGroup, Staff, TableAssignment, Venue

logger = logging.getLogger(__name__)

NO_STAFF_PATIENCE_PENALTY = 5


def table_probability(occupied: int, capacity: int) -> float:
    if capacity <= 0:
        return 0.0
    return max(0.0, 1.0 - occupied / capacity)


def table_size(group_size: int) -> str:
    if group_size <= 2:
        return "small"
    return "medium" if group_size <= 4 else "large"


def try_acquire_table(ctx, venue: Venue, customer: CustomerGroup) -> Optional[TableAssignment]:
    """Roll for a free table; the odds fall linearly with occupancy."""
    p = table_probability(ctx.occupied_tables(venue.vid), venue.settings.capacity)
    if ctx.rng.random() < p:
        return TableAssignment(table_id=f"{venue.vid}-t{ctx.clock.ticks}-{customer.cid}",
                               size=table_size(customer.group_size))
    return None


def staff_cap(cfg: dict, staff_type: str) -> int:
    staff_cfg = cfg.get("staff", {})
    return int(staff_cfg.get("caps", {}).get(staff_type, staff_cfg.get("fallback_cap", 5)))


def eligible_staff(ctx, venue: Venue) -> List[Staff]:
    """
    On-duty staff who can take another group, canonical role first.

    The venue type's service role (waiter/bartender) is tried with that
    role's cap; if nobody qualifies, any on-duty staff under the fallback
    cap is eligible.
    """
    on_duty = [s for s in ctx.staff_at(venue.vid) if s.is_working]
    role = venue_type_cfg(ctx.cfg, venue.type).get("service_role")
    role_cap = staff_cap(ctx.cfg, role)
    candidates = [s for s in on_duty if s.type == role and ctx.assigned_count(s.sid) < role_cap]
    if candidates:
        return candidates
    fallback_cap = int(ctx.cfg.get("staff", {}).get("fallback_cap", 5))
    return [s for s in on_duty if ctx.assigned_count(s.sid) < fallback_cap]


def pick_least_loaded(candidates: List[Staff], load: Dict[str, int]) -> Optional[Staff]:
    # min() keeps the first of equal loads, i.e. roster order breaks ties
    if not candidates:
        return None
    return min(candidates, key=lambda s: load.get(s.sid, 0))


def assign_staff(ctx, customer: CustomerGroup, venue: Venue) -> Optional[Staff]:
    candidates = eligible_staff(ctx, venue)
    load = {s.sid: ctx.assigned_count(s.sid) for s in candidates}
    chosen = pick_least_loaded(candidates, load)
    if chosen is None:
        customer.assigned_staff = None
        customer.patience -= NO_STAFF_PATIENCE_PENALTY
        logger.warning("No staff available to serve customer group %s", customer.cid)
        return None
    customer.assigned_staff = chosen.sid
    logger.info("%s is now serving customer group %s", chosen.name, customer.cid)
    return chosen


def _redistribute(ctx, customers: List[CustomerGroup], staff: List[Staff], patience_delta: float):
    """Hand each group to the currently least-loaded staff member."""
    load = {s.sid: ctx.assigned_count(s.sid) for s in staff}
    for customer in customers:
        chosen = pick_least_loaded(staff, load)
        customer.assigned_staff = chosen.sid
        load[chosen.sid] += 1
        customer.patience += patience_delta


def reassign_from_staff(ctx, staff_id: str, venue_id: str) -> int:
    """
    Move groups away from a departing staff member.

    Returns the number of groups affected. With no one left on duty the
    groups are unassigned and lose 10 patience; otherwise each loses 5.
    """
    affected = [c for c in ctx.customers_at(venue_id) if c.assigned_staff == staff_id]
    if not affected:
        return 0
    remaining = [s for s in ctx.staff_at(venue_id) if s.sid != staff_id and s.is_working]
    if not remaining:
        for customer in affected:
            customer.assigned_staff = None
            customer.patience -= 10
        logger.warning("No staff available to serve %d customers at venue %s", len(affected), venue_id)
        return len(affected)
    _redistribute(ctx, affected, remaining, -5)
    logger.info("Reassigned %d customers from staff %s to other staff", len(affected), staff_id)
    return len(affected)


def assign_unserved(ctx, venue_id: str) -> int:
    """Give every unassigned group at the venue a server (e.g. after hiring)."""
    unassigned = [c for c in ctx.customers_at(venue_id) if c.assigned_staff is None]
    on_duty = [s for s in ctx.staff_at(venue_id) if s.is_working]
    if not unassigned or not on_duty:
        return 0
    _redistribute(ctx, unassigned, on_duty, +5)
    logger.info("Assigned %d customers to staff in venue %s", len(unassigned), venue_id)
    return len(unassigned)
