# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# lifecycle.py
# -----------------------------------------------------------------------------
# Purpose:
#   Customer lifecycle state machine. advance() moves one group exactly one
#   state-appropriate step per tick:
#     entering -> seated -> ordering -> waiting -> eating|drinking
#              -> paying -> leaving -> (removed)
#
# Design notes:
#   - Every handler re-resolves the venue; a missing venue removes the group
#     at once, whatever its state.
#   - Staff is re-resolved by id each time it is needed and may be gone.
#   - Venue closure is not a cancel signal: groups are pushed to 'leaving'
#     and finish their linger on later ticks.
#
# Usage:
#   from venuesim.lifecycle import advance, close_venue
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
from typing import Optional

from .config import venue_type_cfg
from .entities import CustomerGroup, CustomerStatus, ItemType, OrderItem, Venue, clamp
from .orders import place_order
from .policies import assign_staff, try_acquire_table
from .satisfaction import final_satisfaction, satisfaction_rating

logger = logging.getLogger(__name__)

ENTRANCE_FEE_BUDGET_SHARE = 0.2
DRINK_PREP_MINUTES = 5
DRINK_CONSUME_MINUTES = 10
FOOD_CONSUME_MINUTES = 20


def _resolve_venue(ctx, customer: CustomerGroup) -> Optional[Venue]:
    venue = ctx.get_venue(customer.venue_id)
    if venue is None:
        ctx.remove_customer(customer.cid)
        ctx.emit("removed", customer, reason="venue_missing", status=customer.status.value)
    return venue


def handle_entering(ctx, customer: CustomerGroup, venue: Venue):
    fee = venue.settings.entrance_fee
    if fee > 0 and not customer.entrance_fee_paid:
        total_fee = fee * customer.group_size
        if total_fee > customer.budget_limit() * ENTRANCE_FEE_BUDGET_SHARE:
            logger.info("A group of %d left because the entrance fee was too high", customer.group_size)
            ctx.remove_customer(customer.cid)
            ctx.emit("rejected", customer, reason="entrance_fee")
            return
        customer.spending_budget -= fee
        customer.entrance_fee_paid = True
        ctx.credit(venue, total_fee)
        ctx.emit("fee_paid", customer, amount=total_fee)

    table = try_acquire_table(ctx, venue, customer)
    if table is not None:
        customer.assigned_table = table
        customer.status = CustomerStatus.SEATED
        customer.adjust_satisfaction(+5)
        assign_staff(ctx, customer, venue)
        logger.info("A group of %d customers was seated at %s", customer.group_size, venue.name)
        ctx.emit("seated", customer, table=table.table_id)
    elif customer.patience > 50:
        customer.patience -= 10
        logger.info("A group of %d customers is waiting for a table", customer.group_size)
    else:
        logger.info("A group of %d left because no tables were available", customer.group_size)
        ctx.remove_customer(customer.cid)
        ctx.emit("rejected", customer, reason="no_table")


def handle_seated(ctx, customer: CustomerGroup, venue: Venue):
    if ctx.clock.minutes_since(customer.arrival_time) > customer.ready_to_order_after:
        customer.status = CustomerStatus.ORDERING
        logger.debug("group %s is ready to order", customer.cid)


def handle_ordering(ctx, customer: CustomerGroup, venue: Venue):
    staff = ctx.get_staff(customer.assigned_staff)
    if staff is None or not staff.is_working:
        staff = assign_staff(ctx, customer, venue)
        if staff is None:
            customer.patience -= 2
            return
    place_order(ctx, customer, staff, venue)
    customer.status = CustomerStatus.WAITING
    customer.order_time = ctx.clock.now
    logger.info("A group of %d placed their order at %s", customer.group_size, venue.name)


def prep_minutes(ctx, item: OrderItem, venue: Venue, speed_factor: float) -> float:
    if item.type == ItemType.FOOD:
        base = venue_type_cfg(ctx.cfg, venue.type).get("food_prep_minutes", 20)
    else:
        base = DRINK_PREP_MINUTES
    return base / speed_factor


def handle_waiting(ctx, customer: CustomerGroup, venue: Venue):
    minutes = ctx.clock.minutes_since(customer.order_time)
    staff = ctx.get_staff(customer.assigned_staff)
    speed_factor = 0.5 + staff.skill("speed") / 100.0 if staff is not None else 1.0

    all_prepared = True
    for item in customer.orders:
        if item.prepared:
            continue
        if minutes >= prep_minutes(ctx, item, venue, speed_factor):
            item.prepared = True
        else:
            all_prepared = False

    if not all_prepared:
        tolerance = 20 + 30 * customer.patience / 100.0
        if minutes > tolerance:
            customer.adjust_satisfaction(-1)
        return

    customer.status = CustomerStatus.EATING if customer.has_food() else CustomerStatus.DRINKING
    customer.serve_time = ctx.clock.now
    if minutes < 10:
        customer.adjust_satisfaction(+10)
    elif minutes < 20:
        customer.adjust_satisfaction(+5)
    elif minutes > 30:
        customer.adjust_satisfaction(-(minutes - 30) / 2.0)
    logger.info("A group of %d received their order after %d minutes", customer.group_size, minutes)
    ctx.emit("served", customer, wait_minutes=minutes)


def consumption_minutes(ctx, customer: CustomerGroup, venue: Venue) -> float:
    total = sum(FOOD_CONSUME_MINUTES if o.type == ItemType.FOOD else DRINK_CONSUME_MINUTES
                for o in customer.orders)
    total *= venue_type_cfg(ctx.cfg, venue.type).get("consumption_factor", 1.0)
    # larger groups linger
    return total * (1 + 0.1 * (customer.group_size - 1))


def handle_consuming(ctx, customer: CustomerGroup, venue: Venue):
    minutes = ctx.clock.minutes_since(customer.serve_time)
    if minutes >= consumption_minutes(ctx, customer, venue):
        customer.status = CustomerStatus.PAYING
        customer.payment_time = ctx.clock.now
        logger.info("A group of %d is ready to pay after %d minutes", customer.group_size, minutes)
        ctx.emit("ready_to_pay", customer)


def handle_paying(ctx, customer: CustomerGroup, venue: Venue):
    amount = customer.total_spending
    ctx.credit(venue, amount)
    venue.stats.total_customers_served += customer.group_size
    final_satisfaction(ctx, customer, venue)
    customer.status = CustomerStatus.LEAVING
    customer.leave_time = ctx.clock.now
    logger.info("A group of %d paid €%.2f", customer.group_size, amount)
    ctx.emit("paid", customer, amount=amount)


def handle_leaving(ctx, customer: CustomerGroup, venue: Venue):
    linger = ctx.cfg.get("sim", {}).get("linger_minutes", 5)
    if ctx.clock.minutes_since(customer.leave_time) < linger:
        return
    stats = venue.stats
    stats.popularity = clamp(stats.popularity + (customer.satisfaction - 50) / 1000.0)
    stats.customer_satisfaction = stats.customer_satisfaction * 0.95 + customer.satisfaction * 0.05
    ctx.remove_customer(customer.cid)
    logger.info("A group of %d %s customers left with %s satisfaction (%.0f)",
                customer.group_size, customer.type, satisfaction_rating(customer.satisfaction),
                customer.satisfaction)
    ctx.emit("left", customer, satisfaction=customer.satisfaction)


def advance(ctx, customer: CustomerGroup):
    """Run the handler for the group's current status."""
    venue = _resolve_venue(ctx, customer)
    if venue is None:
        return
    status = customer.status
    if status == CustomerStatus.ENTERING:
        handle_entering(ctx, customer, venue)
    elif status == CustomerStatus.SEATED:
        handle_seated(ctx, customer, venue)
    elif status == CustomerStatus.ORDERING:
        handle_ordering(ctx, customer, venue)
    elif status == CustomerStatus.WAITING:
        handle_waiting(ctx, customer, venue)
    elif status in (CustomerStatus.EATING, CustomerStatus.DRINKING):
        handle_consuming(ctx, customer, venue)
    elif status == CustomerStatus.PAYING:
        handle_paying(ctx, customer, venue)
    elif status == CustomerStatus.LEAVING:
        handle_leaving(ctx, customer, venue)
    else:
        raise ValueError(f"Unhandled customer status {status!r}")


def close_venue(ctx, venue_id: str) -> int:
    """Send every group at the venue to 'leaving'; returns how many."""
    customers = ctx.customers_at(venue_id)
    now = ctx.clock.now
    for customer in customers:
        customer.status = CustomerStatus.LEAVING
        customer.leave_time = now
        customer.patience -= 20
    logger.info("%d customers will leave venue %s due to closure", len(customers), venue_id)
    return len(customers)
