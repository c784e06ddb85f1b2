#!/usr/bin/env python3
"""
Run a Monte Carlo insider trading experiment.

Simulates many independent daily double auction price paths, with or without
an insider entering ahead of a news event, and writes the mean price path,
per-run losses and a summary to the output directory.

Usage:
    python scripts/run_insider_experiment.py [--config FILE] [--insider] [--side buy|sell]
        [--simulations N] [--days N] [--output DIR]
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

import numpy as np
import pandas as pd
from omegaconf import OmegaConf

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dayauction.config import build_aggregator, build_simulator, load_config
from dayauction.event_logger import EventLogger

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run Insider Trading Monte Carlo Experiment")
    parser.add_argument("--config", type=str, default=None, help="Python preset file defining CONFIG")
    parser.add_argument("--simulations", type=int, default=None, help="Number of independent runs")
    parser.add_argument("--days", type=int, default=None, help="Trading days per run")
    parser.add_argument("--seed", type=int, default=None, help="Base random seed")
    parser.add_argument(
        "--insider",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Enable (--insider) or disable (--no-insider) the insider",
    )
    parser.add_argument("--side", type=str, default=None, choices=["buy", "sell"], help="Insider side")
    parser.add_argument("--notional", type=float, default=None, help="Price adjustment from news")
    parser.add_argument("--richness", type=float, default=None, help="Insider order quantity")
    parser.add_argument("--count", type=int, default=None, help="Number of insider orders")
    parser.add_argument(
        "--executor", type=str, default=None, choices=["process", "thread", "serial"], help="Run scheduling"
    )
    parser.add_argument("--workers", type=int, default=None, help="Worker pool size")
    parser.add_argument("--output", type=str, default=None, help="Output directory")
    parser.add_argument(
        "--log", type=str, default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log level"
    )
    return parser.parse_args(argv)


def overrides_from_args(args: argparse.Namespace) -> dict:
    """Nested config overrides for every flag that was given."""
    mapping = {
        ("experiment", "n_simulations"): args.simulations,
        ("experiment", "n_days"): args.days,
        ("experiment", "base_seed"): args.seed,
        ("experiment", "executor"): args.executor,
        ("experiment", "max_workers"): args.workers,
        ("experiment", "log_level"): args.log,
        ("insider", "enabled"): args.insider,
        ("insider", "side"): args.side,
        ("insider", "notional"): args.notional,
        ("insider", "richness"): args.richness,
        ("insider", "count"): args.count,
    }
    overrides: dict = {}
    for (section, key), value in mapping.items():
        if value is not None:
            overrides.setdefault(section, {})[key] = value
    return overrides


def main() -> None:
    args = parse_args()
    cfg = load_config(args.config, overrides_from_args(args))

    logging.basicConfig(
        level=getattr(logging, cfg.experiment.log_level),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = (
        Path(args.output)
        if args.output
        else Path(cfg.experiment.output_dir) / f"{cfg.experiment.name}_{timestamp}"
    )
    output_dir.mkdir(parents=True, exist_ok=True)

    logger.info("=" * 60)
    logger.info(f"EXPERIMENT: {cfg.experiment.name}")
    logger.info("=" * 60)
    logger.info(f"Runs: {cfg.experiment.n_simulations}, days: {cfg.experiment.n_days}")
    if cfg.insider.enabled:
        logger.info(
            f"Insider: {cfg.insider.side} on day {cfg.insider.day}, notional {cfg.insider.notional}, "
            f"richness {cfg.insider.richness}, count {cfg.insider.count}"
        )
    logger.info(f"Output: {output_dir}")

    OmegaConf.save(cfg, output_dir / "config.yaml")

    if cfg.experiment.log_events:
        event_path = output_dir / "run_0_events.jsonl"
        with EventLogger(event_path) as events:
            build_simulator(cfg, event_logger=events).run(
                np.random.default_rng([cfg.experiment.base_seed, 0]), run_index=0
            )
        logger.info(f"Event log saved: {event_path}")

    result = build_aggregator(cfg).run()

    if result.completed == 0:
        logger.error(f"All {result.n_simulations} runs failed; nothing to aggregate")
        sys.exit(1)

    result.to_frame().to_csv(output_dir / "mean_path.csv", index=False)
    np.save(output_dir / "paths.npy", result.paths)

    examples = result.illustrative_paths()
    pd.DataFrame({name: path for name, path in examples.items()}).rename_axis("day").to_csv(
        output_dir / "example_paths.csv"
    )

    summary = {
        "experiment": cfg.experiment.name,
        "n_simulations": result.n_simulations,
        "completed": result.completed,
        "failed": result.failed,
        "final_mean_price": float(result.mean_path[-1]),
    }
    if result.losses is not None:
        pd.DataFrame({"run": result.run_indices, "societal_loss": result.losses}).to_csv(
            output_dir / "losses.csv", index=False
        )
        summary["mean_loss"] = result.mean_loss
        summary["loss_std_error"] = result.loss_std_error
        summary["loss_ci_95"] = result.loss_confidence_interval(0.95)
        logger.info(f"Loss to society: {int(np.floor(result.mean_loss))}")

    with open(output_dir / "summary.json", "w") as f:
        json.dump(summary, f, indent=2)

    logger.info(f"Final mean price: {summary['final_mean_price']:.2f}")
    logger.info(f"Results saved to {output_dir}")


if __name__ == "__main__":
    main()
