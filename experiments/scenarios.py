"""
experiments/scenarios.py

Holds scenario definitions (decision variables) to sweep during experiments.
Add pricing, staffing levels, and venue settings here.
"""

from __future__ import annotations

BASELINE = {
    "name": "baseline",
    "overrides": {},  # override config keys here per scenario
}

# Saturday start: weekend multiplier applies all day
WEEKEND_RUSH = {
    "name": "weekend_rush",
    "overrides": {
        "sim": {
            "start": {"year": 2025, "month": 1, "day": 4, "hour": 8, "minute": 0, "day_of_week": 6},
        },
        "cities": {
            "Rome": {"affluence": 1.0, "popularity": 70},
        },
    },
}

# Venue lists are replaced wholesale by apply_overrides, so scenarios that
# touch a venue build on a copy of the baseline venue in run_experiments.
HIGH_ENTRANCE_FEE = {
    "name": "high_entrance_fee",
    "overrides": {},
    "venue_overrides": {
        "v1": {"settings": {"entrance_fee": 5.0}},
    },
}

UNDERSTAFFED = {
    "name": "understaffed",
    "overrides": {
        "staff": {"caps": {"waiter": 2}},
    },
    "venue_overrides": {
        "v1": {"drop_staff": ["s2"]},
    },
}

SCENARIOS = [BASELINE, WEEKEND_RUSH, HIGH_ENTRANCE_FEE, UNDERSTAFFED]
