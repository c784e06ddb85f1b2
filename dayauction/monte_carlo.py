"""
Monte Carlo aggregation over independent runs.

A single path is dominated by the noise of the per-order price draws, so the
aggregator runs many independent paths and averages them day by day. Runs
share nothing: run i draws from numpy.random.default_rng([base_seed, i]), so
a batch is reproducible and the result does not depend on how runs are
scheduled across workers.

Runs that fail with a SimulationError are logged, reported as RunFailure and
left out of every mean (never zero-filled).
"""

import logging
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from scipy import stats
from tqdm import tqdm

from dayauction.exceptions import ConfigurationError, SimulationError
from dayauction.metrics import path_statistics, select_illustrative_paths
from dayauction.simulation import SimulationResult, SingleRunSimulator

logger = logging.getLogger(__name__)

EXECUTORS = ("process", "thread", "serial")


@dataclass(frozen=True)
class RunFailure:
    """A run excluded from aggregation."""

    run_index: int
    reason: str


@dataclass
class AggregateResult:
    """
    Reduction of a batch of runs.

    Attributes:
        n_simulations: Runs requested
        n_days: Trading days per run
        paths: (completed runs, n_days + 1) matrix of price paths, in run order
        losses: Societal loss per completed run (insider mode), else None
        run_indices: Run index of each row of paths
        failures: Runs excluded from aggregation
        seed_price: Price before day 1
    """

    n_simulations: int
    n_days: int
    paths: np.ndarray
    losses: np.ndarray | None = None
    run_indices: list[int] = field(default_factory=list)
    failures: list[RunFailure] = field(default_factory=list)
    seed_price: float = 100.0

    @property
    def completed(self) -> int:
        return int(self.paths.shape[0])

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def mean_path(self) -> np.ndarray | None:
        """Elementwise mean closing price for days 1..n_days."""
        if self.completed == 0:
            return None
        return self.paths[:, 1:].mean(axis=0)

    @property
    def mean_loss(self) -> float | None:
        if self.losses is None or self.losses.size == 0:
            return None
        return float(np.mean(self.losses))

    @property
    def loss_std_error(self) -> float | None:
        if self.losses is None or self.losses.size < 2:
            return None
        return float(stats.sem(self.losses))

    def loss_confidence_interval(self, level: float = 0.95) -> tuple[float, float] | None:
        """
        Student-t confidence interval for the mean loss.

        Returns:
            (lower, upper), or None with fewer than two completed insider runs
        """
        sem = self.loss_std_error
        mean = self.mean_loss
        if sem is None or mean is None:
            return None
        if sem == 0:
            return mean, mean
        lower, upper = stats.t.interval(level, df=self.losses.size - 1, loc=mean, scale=sem)
        return float(lower), float(upper)

    def illustrative_paths(self) -> dict[str, np.ndarray]:
        """Bearish, stable and bullish example paths picked by final price."""
        picks = select_illustrative_paths(self.paths, self.seed_price)
        return {name: self.paths[idx] for name, idx in picks.items()}

    def to_frame(self) -> pd.DataFrame:
        """Per-day summary table for days 1..n_days."""
        summary = path_statistics(self.paths[:, 1:])
        return pd.DataFrame(
            {
                "day": np.arange(1, self.n_days + 1),
                "mean_price": summary["mean"],
                "std_price": summary["std"],
                "min_price": summary["min"],
                "max_price": summary["max"],
            }
        )


def run_seeded(simulator: SingleRunSimulator, base_seed: int, run_index: int) -> SimulationResult | RunFailure:
    """
    Execute one run with its own generator.

    Module-level so it can be sent to worker processes.
    """
    rng = np.random.default_rng([base_seed, run_index])
    try:
        return simulator.run(rng, run_index=run_index)
    except SimulationError as exc:
        return RunFailure(run_index=run_index, reason=str(exc))


class MonteCarloAggregator:
    """
    Runs many independent simulations and averages them.

    Runs are independent, so they are spread over a process (or thread)
    pool; results are only combined once every run has finished.
    """

    def __init__(
        self,
        simulator: SingleRunSimulator,
        n_simulations: int = 1000,
        base_seed: int = 42,
        executor: str = "process",
        max_workers: int | None = None,
        show_progress: bool | None = None,
    ) -> None:
        """
        Initialize the aggregator.

        Args:
            simulator: Configured single run simulator (shared read-only by all runs)
            n_simulations: Number of independent runs
            base_seed: Non-negative seed combined with each run index
            executor: "process", "thread" or "serial"
            max_workers: Pool size (executor default if None)
            show_progress: Progress bar; by default shown unless logging at DEBUG

        Raises:
            ConfigurationError: On invalid arguments
        """
        if n_simulations < 1:
            raise ConfigurationError(f"n_simulations must be >= 1, got {n_simulations}")
        if base_seed < 0:
            raise ConfigurationError(f"base_seed must be non-negative, got {base_seed}")
        if executor not in EXECUTORS:
            raise ConfigurationError(f"executor must be one of {EXECUTORS}, got {executor!r}")
        if executor != "serial" and simulator.event_logger is not None:
            raise ConfigurationError("event logging requires the serial executor")

        self.simulator = simulator
        self.n_simulations = n_simulations
        self.base_seed = base_seed
        self.executor = executor
        self.max_workers = max_workers
        if show_progress is None:
            show_progress = logger.getEffectiveLevel() >= logging.INFO
        self.show_progress = show_progress

    def _make_pool(self) -> Executor:
        if self.executor == "process":
            return ProcessPoolExecutor(max_workers=self.max_workers)
        return ThreadPoolExecutor(max_workers=self.max_workers)

    def _run_serial(self) -> list[SimulationResult | RunFailure]:
        outcomes = []
        runs = tqdm(
            range(self.n_simulations),
            desc="Simulations",
            unit="run",
            dynamic_ncols=True,
            disable=not self.show_progress,
        )
        for run_index in runs:
            outcomes.append(run_seeded(self.simulator, self.base_seed, run_index))
        return outcomes

    def _run_pooled(self) -> list[SimulationResult | RunFailure]:
        outcomes = []
        with self._make_pool() as pool:
            futures = [
                pool.submit(run_seeded, self.simulator, self.base_seed, run_index)
                for run_index in range(self.n_simulations)
            ]
            progress = tqdm(
                as_completed(futures),
                total=len(futures),
                desc="Simulations",
                unit="run",
                dynamic_ncols=True,
                disable=not self.show_progress,
            )
            for future in progress:
                outcomes.append(future.result())
        return outcomes

    def run(self) -> AggregateResult:
        """
        Run every simulation and reduce the results.

        Returns:
            AggregateResult over the completed runs
        """
        logger.info(
            f"Running {self.n_simulations} simulations of {self.simulator.n_days} days "
            f"({self.executor} executor, max_workers={self.max_workers})"
        )

        if self.executor == "serial":
            outcomes = self._run_serial()
        else:
            outcomes = self._run_pooled()

        return self.aggregate(outcomes)

    def aggregate(self, outcomes: list[SimulationResult | RunFailure]) -> AggregateResult:
        """
        Combine run outcomes, excluding failures.

        Args:
            outcomes: One SimulationResult or RunFailure per run, any order

        Returns:
            AggregateResult with rows ordered by run index
        """
        results: list[SimulationResult] = []
        failures: list[RunFailure] = []
        for outcome in outcomes:
            if isinstance(outcome, RunFailure):
                logger.warning(f"Run {outcome.run_index} failed and is excluded: {outcome.reason}")
                failures.append(outcome)
            else:
                results.append(outcome)

        results.sort(key=lambda r: r.run_index)
        failures.sort(key=lambda f: f.run_index)

        n_days = self.simulator.n_days
        if results:
            paths = np.vstack([r.path for r in results])
        else:
            paths = np.empty((0, n_days + 1), dtype=np.float64)

        losses = None
        if self.simulator.insider is not None:
            losses = np.array(
                [r.societal_loss for r in results if r.societal_loss is not None],
                dtype=np.float64,
            )

        aggregate = AggregateResult(
            n_simulations=self.n_simulations,
            n_days=n_days,
            paths=paths,
            losses=losses,
            run_indices=[r.run_index for r in results],
            failures=failures,
            seed_price=self.simulator.seed_price,
        )

        logger.info(f"Completed {aggregate.completed} runs, {aggregate.failed} failed")
        if aggregate.mean_loss is not None:
            logger.info(f"Mean societal loss: {aggregate.mean_loss:.2f}")
        return aggregate
