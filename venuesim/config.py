# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# config.py
# -----------------------------------------------------------------------------
# Purpose:
#   Load the YAML configuration, merge scenario overrides, and validate the
#   venue/customer tables up front.
#
# Design notes:
#   - Config stays a plain dict (yaml.safe_load); modules read what they need.
#   - Bad tables are content bugs, so validation raises ConfigError instead of
#     letting a half-configured engine run.
#
# Usage:
#   cfg = load_cfg(); validate_cfg(cfg)
# -----------------------------------------------------------------------------

from __future__ import annotations
import copy, math, os
from typing import Dict, Optional

import yaml

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_CFG_PATH = os.path.join(ROOT, "config", "baseline.yaml")

_VENUE_TYPE_KEYS = (
    "base_rate", "hour_curve", "spend_range", "expected_spend",
    "music_pref", "lighting_pref", "service_role",
)
_CUSTOMER_TYPE_KEYS = (
    "patience_modifier", "spending_modifier", "group_size_probability",
    "quality_importance", "speed_importance",
)
_RANGE_KEYS = ("spend_range", "music_pref", "lighting_pref", "quality_importance", "speed_importance")
# [low, high) ranges fed to randrange
_INT_RANGE_KEYS = ("music_pref", "lighting_pref", "quality_importance", "speed_importance")


class ConfigError(ValueError):
    """Raised when the configuration is malformed or references unknown types."""


def load_cfg(path: Optional[str] = None) -> Dict:
    with open(path or DEFAULT_CFG_PATH, "r") as f:
        return yaml.safe_load(f)


def apply_overrides(cfg: Dict, overrides: Dict) -> Dict:
    """Apply scenario overrides (recursive merge) on top of the base config."""
    new = copy.deepcopy(cfg)

    def _merge(dst: Dict, src: Dict):
        for key, val in src.items():
            if isinstance(val, dict) and isinstance(dst.get(key), dict):
                _merge(dst[key], val)
            else:
                dst[key] = copy.deepcopy(val)

    _merge(new, overrides)
    return new


def venue_type_cfg(cfg: Dict, venue_type: str) -> Dict:
    table = cfg.get("venue_types", {}).get(venue_type)
    if table is None:
        raise ConfigError(f"Unknown venue type {venue_type!r}")
    return table


def customer_type_cfg(cfg: Dict, customer_type: str) -> Dict:
    table = cfg.get("customer_types", {}).get(customer_type)
    if table is None:
        raise ConfigError(f"Unknown customer type {customer_type!r}")
    return table


def _check_range(where: str, key: str, rng) -> None:
    if not isinstance(rng, (list, tuple)) or len(rng) != 2:
        raise ConfigError(f"{where}.{key} must be a [low, high] pair, got {rng!r}")
    if rng[0] > rng[1]:
        raise ConfigError(f"{where}.{key} is inverted: {rng!r}")
    if key in _INT_RANGE_KEYS and rng[0] == rng[1]:
        raise ConfigError(f"{where}.{key} is empty: {rng!r} (high is exclusive)")


def validate_cfg(cfg: Dict) -> Dict:
    """Fail fast on malformed tables; returns cfg unchanged for chaining."""
    sim = cfg.get("sim", {})
    if sim.get("tick_minutes", 15) <= 0:
        raise ConfigError("sim.tick_minutes must be positive")
    if sim.get("max_customers", 100) <= 0:
        raise ConfigError("sim.max_customers must be positive")

    venue_types = cfg.get("venue_types") or {}
    if not venue_types:
        raise ConfigError("venue_types is empty")
    for name, table in venue_types.items():
        where = f"venue_types.{name}"
        for key in _VENUE_TYPE_KEYS:
            if key not in table:
                raise ConfigError(f"{where} is missing {key!r}")
        for key in _RANGE_KEYS:
            if key in table:
                _check_range(where, key, table[key])
        for window in table["hour_curve"]:
            if len(window) != 3:
                raise ConfigError(f"{where}.hour_curve entries must be [start, end, multiplier]")

    customer_types = cfg.get("customer_types") or {}
    if not customer_types:
        raise ConfigError("customer_types is empty")
    for name, table in customer_types.items():
        where = f"customer_types.{name}"
        for key in _CUSTOMER_TYPE_KEYS:
            if key not in table:
                raise ConfigError(f"{where} is missing {key!r}")
        for key in _RANGE_KEYS:
            if key in table:
                _check_range(where, key, table[key])
        probs = table["group_size_probability"]
        if not probs:
            raise ConfigError(f"{where}.group_size_probability is empty")
        if any(p < 0 for p in probs):
            raise ConfigError(f"{where}.group_size_probability has a negative weight")
        if not math.isclose(sum(probs), 1.0, abs_tol=1e-6):
            raise ConfigError(f"{where}.group_size_probability sums to {sum(probs)}, expected 1")
        if table.get("weight", 1.0) < 0:
            raise ConfigError(f"{where}.weight must not be negative")

    for venue in cfg.get("venues", []):
        if venue.get("type") not in venue_types:
            raise ConfigError(f"venue {venue.get('id')!r} has unknown type {venue.get('type')!r}")
    return cfg
