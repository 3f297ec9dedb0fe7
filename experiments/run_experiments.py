"""
experiments/run_experiments.py

Experiment harness that loads the baseline config, applies scenario overrides,
runs multiple daily replications, and reports KPIs with confidence intervals.
The script is intentionally lightweight so we can tweak scenarios or plug in
other analysis pipelines as needed.
"""

from __future__ import annotations
import argparse, copy, logging, math, os
from typing import Callable, Dict, List
from statistics import mean, stdev, NormalDist

from venuesim.config import ROOT, apply_overrides, load_cfg, validate_cfg
from venuesim.simulation import run_one_day

from .scenarios import SCENARIOS


def build_scenario_cfg(cfg: Dict, sc: Dict) -> Dict:
    """Apply config overrides, then per-venue tweaks (settings merge, staff drops)."""
    new = apply_overrides(cfg, sc.get("overrides", {}))
    for venue in new.get("venues", []):
        tweaks = sc.get("venue_overrides", {}).get(venue.get("id"))
        if not tweaks:
            continue
        tweaks = dict(tweaks)
        drop = set(tweaks.pop("drop_staff", []))
        if drop:
            venue["staff"] = [s for s in venue.get("staff", []) if s.get("id") not in drop]
        merged = apply_overrides(venue, tweaks)
        venue.clear()
        venue.update(merged)
    return validate_cfg(new)


def mean_ci(values: List[float], confidence_level: float) -> tuple[float, float]:
    """
    Return (mean, half-width) using a t-distribution critical value (falls back
    to normal only if SciPy is unavailable).
    """
    if not values:
        return 0.0, 0.0
    mu = mean(values)
    n = len(values)
    if n < 2:
        return mu, 0.0
    level = min(max(confidence_level, 0.0), 0.999999)
    alpha = 1.0 - level
    try:  # pragma: no cover
        from scipy.stats import t  # type: ignore
        tcrit = t.ppf(1 - alpha / 2.0, n - 1)
    except ImportError:
        tcrit = NormalDist().inv_cdf(1 - alpha / 2.0)
    half = tcrit * (stdev(values) / math.sqrt(n))
    return mu, half


def series(results: List[Dict], extractor: Callable[[Dict], float]) -> List[float]:
    """Collect a numeric series from each replication result."""
    return [float(extractor(res)) for res in results]


def average_time_series(results: List[Dict], key: str) -> List[Dict[str, float]]:
    """Average a cumulative time-series column across replications (same tick grid)."""
    runs = [res.get("time_series", []) for res in results if res.get("time_series")]
    if not runs:
        return []
    length = min(len(r) for r in runs)
    return [
        {
            "time_minutes": runs[0][i]["time_minutes"],
            key: sum(r[i][key] for r in runs) / len(runs),
        }
        for i in range(length)
    ]


def plot_revenue_curves(curves: List[Dict], out_dir: str):
    """
    Persist a PNG with cumulative revenue over the simulated day, one line
    per scenario.
    """
    if not curves:
        return None
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt  # type: ignore
    except ImportError:
        return None
    plt.figure(figsize=(9, 5))
    for entry in curves:
        pts = entry["series"]
        if not pts:
            continue
        plt.plot([p["time_minutes"] for p in pts], [p["revenue_total"] for p in pts],
                 linewidth=1.5, label=entry["name"])
    plt.xlabel("Time since start (minutes)")
    plt.ylabel("Cumulative revenue (€)")
    plt.title("Revenue over the day across scenarios")
    plt.grid(True, linestyle="--", alpha=0.4)
    plt.legend()
    os.makedirs(out_dir, exist_ok=True)
    out_path = os.path.join(out_dir, "revenue_by_time.png")
    plt.tight_layout()
    plt.savefig(out_path, dpi=160)
    plt.close()
    return out_path


def main(argv=None):
    """Entry point: drive all scenarios, replications, and report KPIs."""
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--config", default=None, help="YAML config (default: config/baseline.yaml)")
    parser.add_argument("--replications", type=int, default=None)
    parser.add_argument("--plot", action="store_true", help="save a revenue-over-time plot")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    cfg = load_cfg(args.config)
    exp_cfg = cfg.get("experiments", {})
    replications = max(1, int(args.replications or exp_cfg.get("replications", 5)))
    confidence = float(exp_cfg.get("confidence_level", 0.95))
    level_pct = confidence * 100.0

    curves = []
    for sc in SCENARIOS:
        sc_base_cfg = build_scenario_cfg(cfg, sc)
        scenario_seed = sc_base_cfg.get("sim", {}).get("seed", 0)
        results = []
        for rep in range(replications):
            sc_cfg = copy.deepcopy(sc_base_cfg)
            # Advance the RNG seed per replication so replications remain iid.
            sc_cfg["sim"]["seed"] = scenario_seed + rep
            results.append(run_one_day(sc_cfg))

        revenue = mean_ci(series(results, lambda r: r.get("revenue_total", 0.0)), confidence)
        served = mean_ci(series(results, lambda r: r.get("people_served", 0)), confidence)
        satisfaction = mean_ci(series(results, lambda r: r.get("avg_final_satisfaction", 0.0)), confidence)
        walkouts = mean_ci(series(results, lambda r: r.get("walkouts_total", 0)), confidence)
        rejected = mean_ci(series(results, lambda r: sum(r.get("rejections", {}).values())), confidence)
        wait = mean_ci(series(results, lambda r: r.get("avg_serve_wait_minutes", 0.0)), confidence)
        upsell = mean_ci(series(results, lambda r: r.get("upsell_value", 0.0)), confidence)
        curves.append({"name": sc["name"], "series": average_time_series(results, "revenue_total")})

        print(f"Scenario: {sc['name']} (replications={replications}, {level_pct:.1f}% CI, "
              f"seeds {scenario_seed}-{scenario_seed + replications - 1})")
        print(f"  Revenue/day: €{revenue[0]:,.2f} ± €{revenue[1]:,.2f}")
        print(f"  People served/day: {served[0]:.1f} ± {served[1]:.1f}")
        print(f"  Avg final satisfaction: {satisfaction[0]:.1f} ± {satisfaction[1]:.1f}")
        print(f"  Avg order-to-serve wait: {wait[0]:.1f} ± {wait[1]:.1f} min")
        print(f"  Walkouts/day: {walkouts[0]:.2f} ± {walkouts[1]:.2f}")
        print(f"  Turned away at entry/day: {rejected[0]:.2f} ± {rejected[1]:.2f}")
        print(f"  Upsell value/day: €{upsell[0]:,.2f} ± €{upsell[1]:,.2f}")
        print("-")

    if args.plot:
        out = plot_revenue_curves(curves, os.path.join(ROOT, "experiments", "output"))
        if out:
            print(f"Revenue plot saved to: {out}")


if __name__ == "__main__":
    main()
