# tests/regression/conftest.py
"""
Shared fixtures and configuration for regression tests.

These tests run full Monte Carlo batches at reduced scale (fewer runs, a
shorter horizon) and check the qualitative results the experiments rely on:
a flat baseline and a price drift in the direction of the insider's news.
"""

import pytest

from dayauction.insider import InsiderEvent
from dayauction.monte_carlo import MonteCarloAggregator
from dayauction.orders import Side
from dayauction.participants import ConstantCount, InsiderCountSchedule
from dayauction.simulation import SingleRunSimulator

# =============================================================================
# Scaled-down experiment configuration
# =============================================================================

NUM_PARTICIPANTS = 100
EVENT_DAY = 20
WINDOW = 30
N_DAYS = 60
NOTIONAL = 10.0


def make_baseline_simulator(n_days: int = 50) -> SingleRunSimulator:
    return SingleRunSimulator(n_days, ConstantCount(NUM_PARTICIPANTS), ConstantCount(NUM_PARTICIPANTS))


def make_insider_simulator(side: Side, richness: float = 1000.0) -> SingleRunSimulator:
    event = InsiderEvent(day=EVENT_DAY, side=side, notional=NOTIONAL, richness=richness)
    schedule = InsiderCountSchedule(base=NUM_PARTICIPANTS, event_day=EVENT_DAY, window=WINDOW, boost=3.0)
    return SingleRunSimulator(N_DAYS, schedule, schedule, insider=event, window=WINDOW)


def run_batch(simulator: SingleRunSimulator, n_simulations: int, executor: str = "serial", base_seed: int = 42):
    return MonteCarloAggregator(
        simulator,
        n_simulations=n_simulations,
        base_seed=base_seed,
        executor=executor,
        max_workers=2,
        show_progress=False,
    ).run()


@pytest.fixture(scope="module")
def baseline_result():
    return run_batch(make_baseline_simulator(), n_simulations=200)


@pytest.fixture(scope="module")
def buyer_result():
    return run_batch(make_insider_simulator(Side.BUY), n_simulations=50)


@pytest.fixture(scope="module")
def seller_result():
    return run_batch(make_insider_simulator(Side.SELL, richness=5000.0), n_simulations=50)


@pytest.fixture
def make_baseline():
    return make_baseline_simulator


@pytest.fixture
def make_insider():
    return make_insider_simulator


@pytest.fixture
def batch():
    return run_batch


@pytest.fixture
def window_end():
    """Path indices of the event day and the last post-event day."""
    return EVENT_DAY, min(EVENT_DAY + WINDOW, N_DAYS)
