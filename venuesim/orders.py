# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# orders.py
# -----------------------------------------------------------------------------
# Purpose:
#   Order & economics: build a group's order against venue stock and budget,
#   evict items until affordable, attempt a staff upsell, and summarise
#   orders for reporting.
#
# Design notes:
#   - Stock is decremented as items are picked and restored on eviction, so
#     the venue inventory always matches the finalized orders.
#   - The order total never exceeds spending_budget * group_size; the upsell
#     only offers drinks that still fit in the remaining headroom.
#
# Usage:
#   from venuesim.orders import place_order
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
from collections import Counter, defaultdict
from typing import Dict, List, Optional, Tuple

from .config import venue_type_cfg
from .entities import CustomerGroup, CustomerStatus, ItemType, InventoryItem, OrderItem, Staff, Venue

logger = logging.getLogger(__name__)

AFFORDABILITY_PATIENCE_PENALTY = 20
UPSELL_SKILL_THRESHOLD = 70


def _pick_item(stock: List[InventoryItem], preferred: List[str], rng) -> Optional[InventoryItem]:
    """First in-stock preferred item, else a random in-stock item."""
    for name in preferred:
        for it in stock:
            if it.name == name and it.stock > 0:
                return it
    available = [it for it in stock if it.stock > 0]
    if available:
        return rng.choice(available)
    return None


def _take(item_type: ItemType, inv_item: InventoryItem) -> OrderItem:
    inv_item.stock -= 1
    return OrderItem(item_type, inv_item.name, inv_item.sell_price)


def _restore(venue: Venue, order: OrderItem):
    inv_item = venue.inventory.find(order.type, order.item)
    if inv_item is not None:
        inv_item.stock += 1


def evict_until_affordable(venue: Venue, orders: List[OrderItem], total: float, limit: float) -> float:
    """Drop the most expensive item (restocking it) until total <= limit."""
    while total > limit and orders:
        priciest = max(range(len(orders)), key=lambda i: orders[i].price)
        removed = orders.pop(priciest)
        total -= removed.price
        _restore(venue, removed)
    return total if orders else 0.0


def attempt_upsell(ctx, customer: CustomerGroup, staff: Optional[Staff], venue: Venue,
                   orders: List[OrderItem], total: float) -> float:
    """
    Let a skilled waiter add the priciest suitable drink.

    Requires a waiter with customer_service above 70, a successful roll at
    (skill - 70) / 100, more than 20% budget headroom, and a venue type
    that upsells. Returns the (possibly increased) total.
    """
    if staff is None or staff.type != "waiter":
        return total
    skill = staff.skill("customer_service")
    if skill <= UPSELL_SKILL_THRESHOLD:
        return total
    chance = (skill - UPSELL_SKILL_THRESHOLD) / 100.0
    limit = customer.budget_limit()
    if not (ctx.rng.random() < chance and limit > total * 1.2):
        return total
    if not venue_type_cfg(ctx.cfg, venue.type).get("upsell", False):
        return total
    headroom = limit - total
    candidates = [d for d in venue.inventory.in_stock(ItemType.DRINK)
                  if d.sell_price > total * 0.2 and d.sell_price <= headroom]
    if not candidates:
        return total
    best = max(candidates, key=lambda d: d.sell_price)
    extra = _take(ItemType.DRINK, best)
    orders.append(extra)
    total += extra.price
    logger.info("%s upsold %s for €%.2f", staff.name, extra.item, extra.price)
    ctx.emit("upsold", customer, item=extra.item, price=extra.price, staff_id=staff.sid)
    return total


def place_order(ctx, customer: CustomerGroup, staff: Optional[Staff], venue: Venue) -> List[OrderItem]:
    """
    Build and finalize the group's order.

    Each person orders one drink and, where the venue serves food, one food
    item, preferring stored preferences. Mutates customer.orders,
    customer.total_spending and the venue inventory.
    """
    rng = ctx.rng
    serves_food = venue_type_cfg(ctx.cfg, venue.type).get("serves_food", False)
    prefs = customer.preferences
    orders: List[OrderItem] = []
    total = 0.0
    for _ in range(customer.group_size):
        drink = _pick_item(venue.inventory.drinks, prefs.preferred_drinks, rng)
        if drink is not None:
            orders.append(_take(ItemType.DRINK, drink))
            total += drink.sell_price
        if serves_food:
            food = _pick_item(venue.inventory.food, prefs.preferred_food, rng)
            if food is not None:
                orders.append(_take(ItemType.FOOD, food))
                total += food.sell_price

    limit = customer.budget_limit()
    if total > limit:
        total = evict_until_affordable(venue, orders, total, limit)

    total = attempt_upsell(ctx, customer, staff, venue, orders, total)

    customer.orders = orders
    customer.total_spending = total if orders else 0.0
    if orders:
        logger.info("A group of %d ordered %d items for €%.2f: %s",
                    customer.group_size, len(orders), total, format_order_details(orders))
        ctx.emit("ordered", customer, items=len(orders), total=total)
    else:
        customer.patience -= AFFORDABILITY_PATIENCE_PENALTY
        logger.warning("A group of %d couldn't afford anything on the menu", customer.group_size)
        ctx.emit("order_failed", customer, reason="affordability")
    return orders


def format_order_details(orders: List[OrderItem]) -> str:
    if not orders:
        return "No items"
    counts: Dict[Tuple[str, str], int] = {}
    prices: Dict[Tuple[str, str], float] = {}
    for o in orders:
        key = (o.type.value, o.item)
        counts[key] = counts.get(key, 0) + 1
        prices[key] = o.price
    return ", ".join(f"{n}x {key[1]} (€{prices[key] * n:.2f})" for key, n in counts.items())


# ----- analytics over the active collection ----------------------------------

_ORDERED_STATUSES = (
    CustomerStatus.WAITING, CustomerStatus.EATING, CustomerStatus.DRINKING,
    CustomerStatus.PAYING, CustomerStatus.LEAVING,
)


def average_order_value(ctx, venue_id: str) -> float:
    spenders = [c for c in ctx.customers_at(venue_id)
                if c.total_spending and c.status in _ORDERED_STATUSES]
    if not spenders:
        return 0.0
    return sum(c.total_spending for c in spenders) / len(spenders)


def most_popular_items(ctx, venue_id: str, item_type: Optional[ItemType] = None, limit: int = 5) -> List[Tuple[str, int]]:
    counts: Counter = Counter()
    for c in ctx.customers_at(venue_id):
        for o in c.orders:
            if item_type is None or o.type == item_type:
                counts[o.item] += 1
    return counts.most_common(limit)


def revenue_by_item_type(ctx, venue_id: str, item_type: Optional[ItemType] = None) -> float:
    return sum(o.price for c in ctx.customers_at(venue_id) for o in c.orders
               if item_type is None or o.type == item_type)


def revenue_by_customer_type(ctx, venue_id: str) -> Dict[str, float]:
    out: Dict[str, float] = defaultdict(float)
    for c in ctx.customers_at(venue_id):
        if c.total_spending > 0:
            out[c.type] += c.total_spending
    return dict(out)
