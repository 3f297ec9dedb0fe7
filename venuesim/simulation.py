# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# simulation.py
# -----------------------------------------------------------------------------
# Purpose:
#   Tick driver (CustomerEngine) and a single replication ("one day"):
#   build the context, run the ticks, and return metrics.
#
# Design notes:
#   - One tick = clock advance, arrivals/closures per venue, then one pass
#     over the active groups in reverse insertion order.
#   - Groups created during a tick are first processed on the next tick.
#
# Usage:
#   from venuesim.simulation import run_one_day
#   results = run_one_day(cfg)
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging, random
from typing import Dict

from . import arrivals, lifecycle, satisfaction
from .config import validate_cfg
from .context import SimulationContext, build_context
from .entities import CustomerStatus
from .metrics import Metrics

logger = logging.getLogger(__name__)


class CustomerEngine:
    def __init__(self, ctx: SimulationContext):
        self.ctx = ctx

    def tick(self):
        ctx = self.ctx
        now = ctx.clock.tick()
        for venue in list(ctx.venues.values()):
            open_now = venue.is_open_at(now.hour)
            if open_now:
                arrivals.generate(ctx, venue)
            elif venue.is_open:
                lifecycle.close_venue(ctx, venue.vid)
            venue.is_open = open_now
        self.update_customers()

    def update_customers(self):
        ctx = self.ctx
        tick = ctx.clock.ticks
        for cid in reversed(list(ctx.customers)):
            customer = ctx.customers.get(cid)
            if customer is None or customer.created_tick == tick:
                continue
            lifecycle.advance(ctx, customer)
            if cid in ctx.customers and customer.status != CustomerStatus.LEAVING:
                satisfaction.update_patience(ctx, customer)
        logger.debug("tick %d done: %d active groups", tick, len(ctx.customers))


def run_one_day(cfg: Dict) -> Dict:
    validate_cfg(cfg)
    rng = random.Random(cfg["sim"].get("seed", 0))
    ctx = build_context(cfg, rng=rng)
    M = Metrics(cfg)
    ctx.subscribe(M.on_event)
    engine = CustomerEngine(ctx)

    n_ticks = int(cfg["sim"]["day_minutes"] // ctx.clock.tick_minutes)
    for _ in range(n_ticks):
        engine.tick()
        M.record_tick(ctx)

    res = M.summary()
    res["player_cash"] = ctx.player_cash
    res["active_groups_at_end"] = len(ctx.customers)
    res["venues"] = {
        v.vid: {
            "popularity": v.stats.popularity,
            "customer_satisfaction": v.stats.customer_satisfaction,
            "total_customers_served": v.stats.total_customers_served,
            "daily_revenue": v.finances.daily_revenue,
        }
        for v in ctx.venues.values()
    }
    return res
