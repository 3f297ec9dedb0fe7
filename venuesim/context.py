# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# context.py
# -----------------------------------------------------------------------------
# Purpose:
#   SimulationContext: the id-indexed stores (venues, staff, active customer
#   groups), the player's cash, the clock, the RNG and the observer list that
#   every engine component receives explicitly.
#
# Design notes:
#   - Customers live in an insertion-ordered dict keyed by id; removal is a
#     pop, and removed ids are remembered so they can never come back.
#   - Lookups by id return None on a miss; callers decide what a miss means.
#
# Usage:
#   ctx = build_context(cfg, rng=random.Random(7))
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
import random
from typing import Callable, Dict, List, Optional

from . import policies
from .clock import Event, GameClock, GameTime
from .entities import (
    SEATED_STATUSES, CustomerGroup, Inventory, InventoryItem, Staff, Venue,
    VenueSettings, VenueStats,
)

logger = logging.getLogger(__name__)

Listener = Callable[[Event], None]


class SimulationContext:
    def __init__(self, cfg: dict, clock: Optional[GameClock] = None, rng: Optional[random.Random] = None):
        self.cfg = cfg
        sim_cfg = cfg.get("sim", {})
        self.clock = clock or GameClock(
            GameTime.from_cfg(sim_cfg.get("start")),
            tick_minutes=sim_cfg.get("tick_minutes", 15),
        )
        self.rng = rng or random.Random(sim_cfg.get("seed", 0))
        self.venues: Dict[str, Venue] = {}
        self.staff: Dict[str, Staff] = {}
        self.customers: Dict[str, CustomerGroup] = {}
        self.player_cash: float = float(cfg.get("player", {}).get("cash", 0.0))
        self._listeners: List[Listener] = []
        self._retired_ids: set = set()
        self._next_id = 0

    # ----- observers -----------------------------------------------------
    def subscribe(self, listener: Listener):
        self._listeners.append(listener)

    def emit(self, kind: str, customer: Optional[CustomerGroup] = None, **data) -> Event:
        data["customer"] = customer
        ev = Event(self.clock.now, kind, data)
        for listener in self._listeners:
            listener(ev)
        return ev

    # ----- stores ----------------------------------------------------------
    def add_venue(self, venue: Venue):
        self.venues[venue.vid] = venue

    def add_staff(self, staff: Staff):
        self.staff[staff.sid] = staff

    def get_venue(self, vid: Optional[str]) -> Optional[Venue]:
        return self.venues.get(vid) if vid is not None else None

    def get_staff(self, sid: Optional[str]) -> Optional[Staff]:
        return self.staff.get(sid) if sid is not None else None

    def staff_at(self, venue_id: str) -> List[Staff]:
        return [s for s in self.staff.values() if s.venue_id == venue_id]

    def hire_staff(self, staff: Staff) -> int:
        """Add staff mid-game; unassigned groups at their venue get a server."""
        self.add_staff(staff)
        return policies.assign_unserved(self, staff.venue_id)

    def fire_staff(self, sid: str) -> Optional[Staff]:
        """Remove staff; their groups move to the remaining on-duty staff."""
        staff = self.staff.pop(sid, None)
        if staff is not None:
            policies.reassign_from_staff(self, sid, staff.venue_id)
        return staff

    # ----- customers ------------------------------------------------------
    def new_customer_id(self) -> str:
        self._next_id += 1
        return f"c{self._next_id:06d}"

    def add_customer(self, customer: CustomerGroup):
        if customer.cid in self.customers or customer.cid in self._retired_ids:
            raise ValueError(f"customer id {customer.cid} already used")
        customer.created_tick = self.clock.ticks
        self.customers[customer.cid] = customer

    def remove_customer(self, cid: str) -> bool:
        customer = self.customers.pop(cid, None)
        if customer is None:
            return False
        self._retired_ids.add(cid)
        return True

    def is_retired(self, cid: str) -> bool:
        return cid in self._retired_ids

    def customers_at(self, venue_id: str) -> List[CustomerGroup]:
        return [c for c in self.customers.values() if c.venue_id == venue_id]

    def occupied_tables(self, venue_id: str) -> int:
        return sum(1 for c in self.customers.values()
                   if c.venue_id == venue_id and c.status in SEATED_STATUSES)

    def assigned_count(self, staff_id: str) -> int:
        return sum(1 for c in self.customers.values() if c.assigned_staff == staff_id)

    # ----- economy --------------------------------------------------------
    def credit(self, venue: Venue, amount: float):
        """Book revenue on the venue and credit the player's cash."""
        venue.finances.record(amount)
        self.player_cash += amount

    def city_affluence(self, city: str) -> float:
        return float(self.cfg.get("cities", {}).get(city, {}).get("affluence", 1.0))

    def city_popularity_multiplier(self, city: str) -> float:
        # city popularity 50 is neutral
        return float(self.cfg.get("cities", {}).get(city, {}).get("popularity", 50)) / 50.0


def _make_inventory(d: dict) -> Inventory:
    def _items(rows):
        return [InventoryItem(r["name"], int(r.get("stock", 0)), float(r["sell_price"])) for r in rows or []]
    return Inventory(drinks=_items(d.get("drinks")), food=_items(d.get("food")))


def make_venue(d: dict) -> Venue:
    """Build a Venue from one entry of cfg['venues']."""
    settings_cfg = d.get("settings", {})
    stats_cfg = d.get("stats", {})
    settings = VenueSettings(
        capacity=int(d.get("capacity", 30)),
        opening_hour=int(d.get("opening_hour", 9)),
        closing_hour=int(d.get("closing_hour", 22)),
        music_volume=float(settings_cfg.get("music_volume", 50)),
        lighting_level=float(settings_cfg.get("lighting_level", 50)),
        entrance_fee=float(settings_cfg.get("entrance_fee", 0.0)),
    )
    stats = VenueStats(**{k: v for k, v in stats_cfg.items() if k in VenueStats.__dataclass_fields__})
    return Venue(
        vid=str(d["id"]),
        name=d.get("name", str(d["id"])),
        type=d["type"],
        city=d.get("city", ""),
        settings=settings,
        stats=stats,
        inventory=_make_inventory(d.get("inventory", {})),
    )


def make_staff(d: dict, venue_id: str) -> Staff:
    return Staff(
        sid=str(d["id"]),
        name=d.get("name", str(d["id"])),
        type=d["type"],
        venue_id=venue_id,
        is_working=bool(d.get("is_working", True)),
        skills={k: float(v) for k, v in (d.get("skills") or {}).items()},
        friendliness=float(d.get("friendliness", 0.0)),
    )


def build_context(cfg: dict, rng: Optional[random.Random] = None) -> SimulationContext:
    """
    Create a context populated from cfg['venues'].

    Each venue entry carries its settings, stats, inventory and staff roster;
    venues start open or closed according to the clock's start hour.
    """
    ctx = SimulationContext(cfg, rng=rng)
    for vd in cfg.get("venues", []):
        venue = make_venue(vd)
        venue.is_open = venue.is_open_at(ctx.clock.now.hour)
        ctx.add_venue(venue)
        for sd in vd.get("staff", []):
            ctx.add_staff(make_staff(sd, venue.vid))
    logger.debug("context built: %d venues, %d staff", len(ctx.venues), len(ctx.staff))
    return ctx
