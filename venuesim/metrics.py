# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# metrics.py
# -----------------------------------------------------------------------------
# Purpose:
#   Collect and summarize KPIs from the engine's notifications: arrivals,
#   throughput, walkouts, revenue, upsells, waits and final satisfaction.
#
# Design notes:
#   - Metrics is a plain listener (ctx.subscribe(M.on_event)); the engine
#     never depends on it.
#   - Summaries return JSON-serializable dicts for easy tabulation.
#
# Usage:
#   M = Metrics(cfg); ctx.subscribe(M.on_event); ...; M.summary()
# -----------------------------------------------------------------------------

from __future__ import annotations
from collections import defaultdict
from typing import Any, Dict, List

from .clock import Event


class Metrics:
    def __init__(self, cfg: dict):
        self.cfg = cfg
        self.tick_minutes = cfg.get("sim", {}).get("tick_minutes", 15)
        self.arrivals = defaultdict(int)          # groups arrived per customer type
        self.people_arrived = 0
        self.groups_served = 0
        self.people_served = 0
        self.rejections = defaultdict(int)        # entry refusals by reason
        self.removals = defaultdict(int)          # forced removals by reason
        self.walkouts = defaultdict(int)          # dissatisfied departures by status
        self.order_failures = 0
        self.sales_revenue = 0.0
        self.fee_revenue = 0.0
        self.upsells = 0
        self.upsell_value = 0.0
        self.wait_samples: List[float] = []       # order -> served minutes
        self.satisfaction_samples: List[float] = []
        self.revenue_by_type = defaultdict(float)
        self.time_series: List[Dict[str, float]] = []

    def on_event(self, ev: Event):
        customer = ev.data.get("customer")
        kind = ev.kind
        if kind == "arrived":
            self.arrivals[customer.type] += 1
            self.people_arrived += customer.group_size
        elif kind == "rejected":
            self.rejections[ev.data.get("reason", "unknown")] += 1
        elif kind == "removed":
            self.removals[ev.data.get("reason", "unknown")] += 1
        elif kind == "fee_paid":
            self.fee_revenue += ev.data["amount"]
        elif kind == "order_failed":
            self.order_failures += 1
        elif kind == "upsold":
            self.upsells += 1
            self.upsell_value += ev.data["price"]
        elif kind == "served":
            self.wait_samples.append(float(ev.data["wait_minutes"]))
        elif kind == "paid":
            self.groups_served += 1
            self.people_served += customer.group_size
            self.sales_revenue += ev.data["amount"]
            self.revenue_by_type[customer.type] += ev.data["amount"]
        elif kind == "left":
            self.satisfaction_samples.append(float(ev.data["satisfaction"]))
        elif kind == "departed_dissatisfied":
            self.walkouts[ev.data.get("status", "unknown")] += 1

    def record_tick(self, ctx):
        """Append a cumulative point for time-series plots."""
        self.time_series.append({
            "time_minutes": ctx.clock.ticks * self.tick_minutes,
            "revenue_total": self.sales_revenue + self.fee_revenue,
            "people_served": self.people_served,
            "active_groups": len(ctx.customers),
        })

    def summary(self) -> Dict[str, Any]:
        groups_arrived = sum(self.arrivals.values())
        avg_wait = sum(self.wait_samples) / len(self.wait_samples) if self.wait_samples else 0.0
        avg_sat = (sum(self.satisfaction_samples) / len(self.satisfaction_samples)
                   if self.satisfaction_samples else 0.0)
        revenue_total = self.sales_revenue + self.fee_revenue
        return {
            "groups_arrived": groups_arrived,
            "people_arrived": self.people_arrived,
            "arrivals_by_type": dict(self.arrivals),
            "groups_served": self.groups_served,
            "people_served": self.people_served,
            "rejections": dict(self.rejections),
            "removals": dict(self.removals),
            "walkouts": dict(self.walkouts),
            "walkouts_total": sum(self.walkouts.values()),
            "order_failures": self.order_failures,
            "sales_revenue": self.sales_revenue,
            "fee_revenue": self.fee_revenue,
            "revenue_total": revenue_total,
            "revenue_per_person": revenue_total / self.people_served if self.people_served else 0.0,
            "revenue_by_customer_type": dict(self.revenue_by_type),
            "upsells": self.upsells,
            "upsell_value": self.upsell_value,
            "avg_serve_wait_minutes": avg_wait,
            "avg_final_satisfaction": avg_sat,
            "time_series": list(self.time_series),
        }
