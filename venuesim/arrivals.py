# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# arrivals.py
# -----------------------------------------------------------------------------
# Purpose:
#   Generate new customer groups for an open venue on each tick: arrival
#   count, customer type, group size, patience, budget and preferences.
#
# Design notes:
#   - The hourly rate is piecewise constant by hour (venue-type curve) and
#     scaled by popularity, weekend and city popularity.
#   - The per-tick count is floor(rate * tick/60 * U[0,1)). This undercounts
#     the hourly rate on average; it is kept for parity with the game's
#     balancing rather than replaced by a true Poisson draw.
#
# Usage:
#   new_groups = generate(ctx, venue)
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging, math
from typing import Dict, List, Sequence

from .clock import GameTime
from .config import ConfigError, customer_type_cfg, venue_type_cfg
from .entities import CustomerGroup, Preferences, Venue

logger = logging.getLogger(__name__)


def _in_window(hour: int, start: int, end: int) -> bool:
    # inclusive on both ends; start > end wraps past midnight
    if start <= end:
        return start <= hour <= end
    return hour >= start or hour <= end


def _hour_multiplier(hour: int, windows: Sequence[Sequence[float]], default: float = 1.0) -> float:
    # piecewise constant lookup: windows are [start, end, multiplier]
    for a, b, mult in windows:
        if _in_window(hour, int(a), int(b)):
            return float(mult)
    return default


def hourly_rate(ctx, venue: Venue, now: GameTime) -> float:
    """Expected customer groups per hour for venue at time now."""
    vt = venue_type_cfg(ctx.cfg, venue.type)
    sim_cfg = ctx.cfg.get("sim", {})
    rate = float(vt["base_rate"])
    rate *= 0.5 + 1.5 * venue.stats.popularity / 100.0
    rate *= _hour_multiplier(now.hour, vt["hour_curve"], vt.get("off_peak_multiplier", 1.0))
    if now.day_of_week in sim_cfg.get("weekend_days", [5, 6]):
        rate *= sim_cfg.get("weekend_multiplier", 1.5)
    rate *= ctx.city_popularity_multiplier(venue.city)
    return rate


def arrivals_this_tick(rate: float, rng, tick_minutes: int = 15) -> int:
    return int(math.floor(rate * tick_minutes / 60.0 * rng.random()))


def type_weights(cfg: Dict, venue_type: str, hour: int) -> Dict[str, float]:
    """Sampling weight per customer type, adjusted for hour and venue affinity."""
    weights: Dict[str, float] = {}
    for name, ct in cfg.get("customer_types", {}).items():
        w = float(ct.get("weight", 1.0))
        peaks = ct.get("peak_hours")
        if peaks:
            if any(_in_window(hour, int(a), int(b)) for a, b in peaks):
                w *= ct.get("peak_factor", 1.0)
            else:
                w *= ct.get("off_peak_factor", 1.0)
        w *= ct.get("venue_affinity", {}).get(venue_type, 1.0)
        weights[name] = w
    return weights


def sample_customer_type(cfg: Dict, venue_type: str, hour: int, rng) -> str:
    weights = type_weights(cfg, venue_type, hour)
    total = sum(weights.values())
    if total <= 0:
        raise ConfigError("customer type weights sum to zero")
    roll = rng.random() * total
    cumulative = 0.0
    for name, w in weights.items():
        cumulative += w
        if roll < cumulative:
            return name
    return name  # float edge: roll landed exactly on the total


def sample_group_size(probs: Sequence[float], rng) -> int:
    roll = rng.random()
    cumulative = 0.0
    for i, p in enumerate(probs):
        cumulative += p
        if roll < cumulative:
            return i + 1
    return 1


def initial_patience(ct: Dict, rng) -> int:
    base = rng.randrange(80, 100)
    return int(math.floor(base * ct["patience_modifier"]))


def spending_budget(vt: Dict, ct: Dict, affluence: float, rng) -> float:
    lo, hi = vt["spend_range"]
    return rng.uniform(lo, hi) * ct["spending_modifier"] * affluence


def _sample_names(items, count: int, rng) -> List[str]:
    """Draw up to count item names with replacement, keeping first occurrences."""
    names: List[str] = []
    for _ in range(min(count, len(items))):
        name = rng.choice(items).name
        if name not in names:
            names.append(name)
    return names


def make_preferences(vt: Dict, ct: Dict, venue: Venue, rng) -> Preferences:
    prefs = Preferences(
        music=rng.randrange(*vt["music_pref"]),
        lighting=rng.randrange(*vt["lighting_pref"]),
        quality_importance=rng.randrange(*ct["quality_importance"]),
        speed_importance=rng.randrange(*ct["speed_importance"]),
    )
    if venue.inventory.drinks:
        prefs.preferred_drinks = _sample_names(venue.inventory.drinks, 1 + rng.randrange(3), rng)
    if venue.inventory.food:
        prefs.preferred_food = _sample_names(venue.inventory.food, 1 + rng.randrange(2), rng)
    return prefs


def make_customer(ctx, venue: Venue, customer_type: str) -> CustomerGroup:
    """Create (but do not register) one customer group of the given type."""
    rng = ctx.rng
    vt = venue_type_cfg(ctx.cfg, venue.type)
    ct = customer_type_cfg(ctx.cfg, customer_type)
    return CustomerGroup(
        cid=ctx.new_customer_id(),
        venue_id=venue.vid,
        type=customer_type,
        group_size=sample_group_size(ct["group_size_probability"], rng),
        arrival_time=ctx.clock.now,
        patience=initial_patience(ct, rng),
        spending_budget=spending_budget(vt, ct, ctx.city_affluence(venue.city), rng),
        preferences=make_preferences(vt, ct, venue, rng),
        ready_to_order_after=5 + rng.randrange(10),
    )


def generate(ctx, venue: Venue) -> List[CustomerGroup]:
    """
    Produce this tick's arrivals for venue and register them in ctx.

    Returns the new groups (possibly empty). No groups are created once the
    active collection holds max_customers groups.
    """
    max_customers = ctx.cfg.get("sim", {}).get("max_customers", 100)
    if len(ctx.customers) >= max_customers:
        return []
    now = ctx.clock.now
    rate = hourly_rate(ctx, venue, now)
    count = arrivals_this_tick(rate, ctx.rng, ctx.clock.tick_minutes)
    created: List[CustomerGroup] = []
    for _ in range(count):
        if len(ctx.customers) >= max_customers:
            break
        ctype = sample_customer_type(ctx.cfg, venue.type, now.hour, ctx.rng)
        customer = make_customer(ctx, venue, ctype)
        ctx.add_customer(customer)
        created.append(customer)
        logger.info("A group of %d %s customers arrived at %s", customer.group_size, ctype, venue.name)
        ctx.emit("arrived", customer)
    logger.debug("%s: rate %.2f/h -> %d arrivals", venue.name, rate, len(created))
    return created
