from __future__ import annotations

import pytest

from venuesim.config import load_cfg
from venuesim.context import build_context
from venuesim.entities import CustomerGroup, Preferences


class FixedRandom:
    """RNG stand-in: every draw returns the low end (or a fixed roll)."""

    def __init__(self, value: float = 0.0):
        self.value = value

    def random(self) -> float:
        return self.value

    def randrange(self, start, stop=None):
        return start if stop is not None else 0

    def uniform(self, a, b):
        return a

    def choice(self, seq):
        return seq[0]


@pytest.fixture
def cfg():
    return load_cfg()


@pytest.fixture
def ctx(cfg):
    return build_context(cfg, rng=FixedRandom(0.0))


@pytest.fixture
def venue(ctx):
    return ctx.venues["v1"]


@pytest.fixture
def events(ctx):
    seen = []
    ctx.subscribe(seen.append)
    return seen


@pytest.fixture
def add_group(ctx):
    def _add(**overrides) -> CustomerGroup:
        fields = dict(
            cid=ctx.new_customer_id(),
            venue_id="v1",
            type="regular",
            group_size=2,
            arrival_time=ctx.clock.now,
            patience=90,
            spending_budget=30.0,
            preferences=Preferences(music=40, lighting=70, quality_importance=50, speed_importance=50),
        )
        fields.update(overrides)
        customer = CustomerGroup(**fields)
        ctx.add_customer(customer)
        return customer
    return _add


@pytest.fixture
def fixed_random():
    return FixedRandom
