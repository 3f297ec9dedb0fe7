from __future__ import annotations

import copy

import pytest

from experiments.run_experiments import average_time_series, build_scenario_cfg, mean_ci
from experiments.scenarios import HIGH_ENTRANCE_FEE, SCENARIOS, UNDERSTAFFED


def test_venue_overrides_merge_into_a_copy(cfg):
    base = copy.deepcopy(cfg)

    sc_cfg = build_scenario_cfg(cfg, HIGH_ENTRANCE_FEE)

    settings = sc_cfg["venues"][0]["settings"]
    assert settings["entrance_fee"] == 5.0
    assert settings["music_volume"] == 40
    assert cfg == base


def test_understaffed_drops_staff_and_lowers_cap(cfg):
    sc_cfg = build_scenario_cfg(cfg, UNDERSTAFFED)

    assert [s["id"] for s in sc_cfg["venues"][0]["staff"]] == ["s1", "s3"]
    assert sc_cfg["staff"]["caps"]["waiter"] == 2
    assert "drop_staff" not in sc_cfg["venues"][0]


def test_every_scenario_builds_a_valid_config(cfg):
    names = [sc["name"] for sc in SCENARIOS]

    assert len(names) == len(set(names))
    for sc in SCENARIOS:
        build_scenario_cfg(cfg, sc)


def test_mean_ci_edge_cases():
    assert mean_ci([], 0.95) == (0.0, 0.0)
    assert mean_ci([5.0], 0.95) == (5.0, 0.0)
    mu, half = mean_ci([1.0, 2.0, 3.0], 0.95)
    assert mu == pytest.approx(2.0)
    assert half > 0


def test_average_time_series_truncates_to_shortest_run():
    runs = [
        {"time_series": [{"time_minutes": 15, "revenue_total": 10.0},
                         {"time_minutes": 30, "revenue_total": 20.0}]},
        {"time_series": [{"time_minutes": 15, "revenue_total": 30.0}]},
    ]

    assert average_time_series(runs, "revenue_total") == [{"time_minutes": 15, "revenue_total": 20.0}]
    assert average_time_series([], "revenue_total") == []
