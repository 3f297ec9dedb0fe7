from __future__ import annotations

import random

import pytest

from venuesim import lifecycle
from venuesim.context import make_staff
from venuesim.entities import CustomerStatus, ItemType, OrderItem


def _fill_venue(venue, add_group):
    venue.settings.capacity = 1
    add_group(status=CustomerStatus.SEATED)


def _drink(name="Lager", price=4.5, prepared=False):
    return OrderItem(ItemType.DRINK, name, price, prepared)


def _food(name="Carbonara", price=13.5, prepared=False):
    return OrderItem(ItemType.FOOD, name, price, prepared)


# ----- entering ---------------------------------------------------------------

def test_unaffordable_entrance_fee_turns_group_away(ctx, venue, add_group, events):
    venue.settings.entrance_fee = 10.0
    group = add_group(group_size=4, spending_budget=2.0)

    lifecycle.advance(ctx, group)

    assert group.cid not in ctx.customers
    assert events[-1].kind == "rejected"
    assert events[-1].data["reason"] == "entrance_fee"
    assert ctx.player_cash == 10000.0


def test_entrance_fee_is_charged_once(ctx, venue, add_group, events):
    venue.settings.entrance_fee = 2.0
    _fill_venue(venue, add_group)
    group = add_group(spending_budget=30.0)

    lifecycle.advance(ctx, group)
    lifecycle.advance(ctx, group)

    assert group.spending_budget == 28.0
    assert group.entrance_fee_paid
    assert ctx.player_cash == pytest.approx(10004.0)
    assert venue.finances.daily_revenue == pytest.approx(4.0)
    assert [e.kind for e in events] == ["fee_paid"]
    assert group.patience == 70
    assert group.status == CustomerStatus.ENTERING


@pytest.mark.parametrize("seed", range(10))
def test_empty_venue_always_seats(ctx, venue, add_group, events, seed):
    ctx.rng = random.Random(seed)
    group = add_group()

    lifecycle.advance(ctx, group)

    assert group.status == CustomerStatus.SEATED
    assert group.satisfaction == 75
    assert group.assigned_table is not None
    assert group.assigned_staff == "s1"
    assert events[-1].kind == "seated"


def test_impatient_group_leaves_when_no_table(ctx, venue, add_group, events):
    _fill_venue(venue, add_group)
    group = add_group(patience=40)

    lifecycle.advance(ctx, group)

    assert group.cid not in ctx.customers
    assert events[-1].data["reason"] == "no_table"


# ----- seated / ordering -------------------------------------------------------

def test_seated_group_orders_after_its_threshold(ctx, add_group):
    early = add_group(status=CustomerStatus.SEATED, ready_to_order_after=5)
    late = add_group(status=CustomerStatus.SEATED, ready_to_order_after=15)

    lifecycle.advance(ctx, early)
    assert early.status == CustomerStatus.SEATED

    ctx.clock.tick()
    lifecycle.advance(ctx, early)
    lifecycle.advance(ctx, late)

    assert early.status == CustomerStatus.ORDERING
    assert late.status == CustomerStatus.SEATED


def test_ordering_places_order_and_starts_wait(ctx, add_group, events):
    group = add_group(status=CustomerStatus.ORDERING, assigned_staff="s2")

    lifecycle.advance(ctx, group)

    assert group.status == CustomerStatus.WAITING
    assert group.order_time == ctx.clock.now
    assert len(group.orders) == 4
    assert events[-1].kind == "ordered"


def test_ordering_with_unknown_staff_finds_a_new_server(ctx, add_group):
    group = add_group(status=CustomerStatus.ORDERING, assigned_staff="s1")
    del ctx.staff["s1"]

    lifecycle.advance(ctx, group)

    assert group.assigned_staff == "s2"
    assert group.status == CustomerStatus.WAITING


def test_ordering_without_staff_waits_and_loses_patience(ctx, add_group):
    for s in ctx.staff.values():
        s.is_working = False
    group = add_group(status=CustomerStatus.ORDERING, assigned_staff="s1")

    lifecycle.advance(ctx, group)

    assert group.status == CustomerStatus.ORDERING
    assert group.orders == []
    assert group.patience == 90 - 5 - 2


# ----- waiting -----------------------------------------------------------------

def test_prep_time_scales_with_staff_speed(ctx, venue):
    assert lifecycle.prep_minutes(ctx, _drink(), venue, 1.2) == pytest.approx(5 / 1.2)
    assert lifecycle.prep_minutes(ctx, _food(), venue, 1.2) == pytest.approx(20 / 1.2)
    venue.type = "fast_food"
    assert lifecycle.prep_minutes(ctx, _food(), venue, 1.0) == pytest.approx(10.0)


def test_fast_drink_is_served_with_bonus(ctx, add_group, events):
    ctx.staff["s1"].skills["speed"] = 100
    group = add_group(status=CustomerStatus.WAITING, assigned_staff="s1",
                      orders=[_drink()], order_time=ctx.clock.now)

    ctx.clock.tick()
    lifecycle.advance(ctx, group)

    assert group.status == CustomerStatus.DRINKING
    assert group.orders[0].prepared
    assert group.serve_time == ctx.clock.now
    assert group.satisfaction == 75
    assert events[-1].kind == "served"
    assert events[-1].data["wait_minutes"] == 15


def test_waiting_is_idempotent_within_a_tick(ctx, add_group):
    group = add_group(status=CustomerStatus.WAITING, assigned_staff="s1",
                      orders=[_drink(prepared=True), _food()], order_time=ctx.clock.now)

    lifecycle.advance(ctx, group)
    lifecycle.advance(ctx, group)

    assert group.status == CustomerStatus.WAITING
    assert [o.prepared for o in group.orders] == [True, False]
    assert group.satisfaction == 70


def test_food_order_goes_to_eating_with_late_penalty(ctx, add_group):
    group = add_group(status=CustomerStatus.WAITING, assigned_staff="s1",
                      orders=[_drink(), _food()], order_time=ctx.clock.now)

    for _ in range(3):
        ctx.clock.tick()
    lifecycle.advance(ctx, group)

    assert group.status == CustomerStatus.EATING
    assert group.satisfaction == pytest.approx(70 - (45 - 30) / 2)


def test_wait_beyond_tolerance_erodes_satisfaction(ctx, add_group):
    ctx.staff["s1"].skills["speed"] = 0
    group = add_group(status=CustomerStatus.WAITING, assigned_staff="s1", patience=10,
                      orders=[_food()], order_time=ctx.clock.now)

    ctx.clock.tick()
    ctx.clock.tick()
    lifecycle.advance(ctx, group)

    assert group.status == CustomerStatus.WAITING
    assert group.satisfaction == 69


# ----- consuming / paying / leaving ----------------------------------------------

def test_consumption_time_depends_on_items_venue_and_group(ctx, venue, add_group):
    group = add_group(group_size=3, orders=[_drink(), _drink()])

    assert lifecycle.consumption_minutes(ctx, group, venue) == pytest.approx(20 * 1.2)
    venue.type = "bar"
    assert lifecycle.consumption_minutes(ctx, group, venue) == pytest.approx(20 * 1.2 * 1.2)


def test_drinkers_move_to_paying_when_done(ctx, add_group, events):
    group = add_group(group_size=1, status=CustomerStatus.DRINKING,
                      orders=[_drink(prepared=True)], serve_time=ctx.clock.now)

    lifecycle.advance(ctx, group)
    assert group.status == CustomerStatus.DRINKING

    ctx.clock.tick()
    lifecycle.advance(ctx, group)

    assert group.status == CustomerStatus.PAYING
    assert group.payment_time == ctx.clock.now
    assert events[-1].kind == "ready_to_pay"


def test_paying_books_revenue_and_starts_leaving(ctx, venue, add_group, events):
    group = add_group(status=CustomerStatus.PAYING, assigned_staff="s1", total_spending=30.0,
                      orders=[_drink(prepared=True), _food(prepared=True)])

    lifecycle.advance(ctx, group)

    assert ctx.player_cash == pytest.approx(10030.0)
    assert venue.finances.daily_revenue == pytest.approx(30.0)
    assert venue.stats.total_customers_served == 2
    assert group.status == CustomerStatus.LEAVING
    assert group.leave_time == ctx.clock.now
    assert 0 <= group.satisfaction <= 100
    assert events[-1].kind == "paid"
    assert events[-1].data["amount"] == 30.0


def test_leaving_group_lingers_then_updates_venue(ctx, venue, add_group, events):
    group = add_group(status=CustomerStatus.LEAVING, satisfaction=80, leave_time=ctx.clock.now)

    lifecycle.advance(ctx, group)
    assert group.cid in ctx.customers

    ctx.clock.tick()
    lifecycle.advance(ctx, group)

    assert group.cid not in ctx.customers
    assert venue.stats.popularity == pytest.approx(50.03)
    assert venue.stats.customer_satisfaction == pytest.approx(51.5)
    assert events[-1].kind == "left"


@pytest.mark.parametrize("status", list(CustomerStatus))
def test_group_at_missing_venue_is_removed(ctx, add_group, events, status):
    group = add_group(venue_id="ghost", status=status)

    lifecycle.advance(ctx, group)

    assert group.cid not in ctx.customers
    assert ctx.is_retired(group.cid)
    assert events[-1].kind == "removed"
    assert events[-1].data["reason"] == "venue_missing"
    assert events[-1].data["status"] == status.value


def test_closing_venue_sends_everyone_to_leaving(ctx, add_group):
    groups = [add_group(status=CustomerStatus.SEATED), add_group(status=CustomerStatus.WAITING)]
    elsewhere = add_group(venue_id="v2", status=CustomerStatus.SEATED)

    assert lifecycle.close_venue(ctx, "v1") == 2
    assert all(g.status == CustomerStatus.LEAVING for g in groups)
    assert all(g.patience == 70 and g.leave_time == ctx.clock.now for g in groups)
    assert elsewhere.status == CustomerStatus.SEATED


def test_group_walks_the_full_lifecycle(ctx, add_group):
    group = add_group()
    seen = []

    lifecycle.advance(ctx, group)
    seen.append(group.status)
    while group.cid in ctx.customers and len(seen) < 40:
        ctx.clock.tick()
        lifecycle.advance(ctx, group)
        if group.status != seen[-1]:
            seen.append(group.status)

    assert seen == [
        CustomerStatus.SEATED, CustomerStatus.ORDERING, CustomerStatus.WAITING,
        CustomerStatus.EATING, CustomerStatus.PAYING, CustomerStatus.LEAVING,
    ]
    assert group.cid not in ctx.customers
    assert ctx.player_cash == pytest.approx(10000.0 + group.total_spending)
    assert group.total_spending <= group.budget_limit()


# ----- staff changes -------------------------------------------------------------

def test_firing_staff_hands_their_groups_over(ctx, add_group):
    groups = [add_group(status=CustomerStatus.SEATED, assigned_staff="s1") for _ in range(2)]

    fired = ctx.fire_staff("s1")

    assert fired.sid == "s1"
    assert {g.assigned_staff for g in groups} == {"s2", "s3"}
    assert all(g.patience == 85 for g in groups)


def test_firing_the_last_server_leaves_groups_unassigned(ctx, add_group):
    ctx.staff["s2"].is_working = False
    ctx.staff["s3"].is_working = False
    groups = [add_group(status=CustomerStatus.SEATED, assigned_staff="s1") for _ in range(2)]

    ctx.fire_staff("s1")

    assert all(g.assigned_staff is None for g in groups)
    assert all(g.patience == 80 for g in groups)


def test_hiring_staff_serves_waiting_groups(ctx, add_group):
    for s in ctx.staff.values():
        s.is_working = False
    group = add_group(status=CustomerStatus.SEATED)

    assert ctx.hire_staff(make_staff({"id": "s9", "type": "waiter"}, "v1")) == 1
    assert group.assigned_staff == "s9"
    assert group.patience == 95

    group.status = CustomerStatus.ORDERING
    lifecycle.advance(ctx, group)

    assert group.status == CustomerStatus.WAITING
    assert group.assigned_staff == "s9"
