from __future__ import annotations

import pytest

from venuesim.context import build_context, make_staff


def test_build_context_reads_venues_and_staff(ctx, venue):
    assert venue.name == "The Copper Kettle"
    assert venue.settings.capacity == 30
    assert (venue.settings.opening_hour, venue.settings.closing_hour) == (9, 23)
    assert [s.sid for s in ctx.staff_at("v1")] == ["s1", "s2", "s3"]
    assert ctx.staff["s1"].skill("customer_service") == 85
    # the clock starts at 08:00, before opening
    assert venue.is_open is False


def test_venue_open_state_follows_start_hour(cfg):
    cfg["sim"]["start"]["hour"] = 12

    assert build_context(cfg).venues["v1"].is_open


def test_opening_hours_wrap_past_midnight(venue):
    venue.settings.opening_hour, venue.settings.closing_hour = 20, 3

    assert venue.is_open_at(23) and venue.is_open_at(2)
    assert not venue.is_open_at(3) and not venue.is_open_at(12)


def test_customer_ids_are_never_reused(ctx, add_group):
    group = add_group()
    assert group.cid == "c000001"

    with pytest.raises(ValueError):
        ctx.add_customer(group)
    assert ctx.remove_customer(group.cid) is True
    assert ctx.remove_customer(group.cid) is False
    with pytest.raises(ValueError):
        ctx.add_customer(group)


def test_lookups_return_none_on_miss(ctx):
    assert ctx.get_venue("nowhere") is None
    assert ctx.get_staff(None) is None
    assert ctx.fire_staff("s9") is None


def test_credit_books_venue_and_player(ctx, venue):
    ctx.credit(venue, 12.5)

    assert venue.finances.daily_revenue == 12.5
    assert venue.finances.monthly_revenue == 12.5
    assert ctx.player_cash == pytest.approx(10012.5)


def test_city_lookups_default_to_neutral(ctx):
    assert ctx.city_affluence("Paris") == 1.4
    assert ctx.city_affluence("Atlantis") == 1.0
    assert ctx.city_popularity_multiplier("Rome") == 1.0


def test_emit_notifies_subscribers_in_order(ctx, add_group):
    seen = []
    ctx.subscribe(lambda ev: seen.append(("a", ev.kind)))
    ctx.subscribe(lambda ev: seen.append(("b", ev.kind)))
    group = add_group()

    ev = ctx.emit("seated", group, table="t1")

    assert seen == [("a", "seated"), ("b", "seated")]
    assert ev.data == {"table": "t1", "customer": group}
    assert ev.t == ctx.clock.now


def test_make_staff_defaults():
    staff = make_staff({"id": 7, "type": "bartender"}, "v2")

    assert staff.sid == "7" and staff.name == "7"
    assert staff.is_working and staff.average_skill() is None
