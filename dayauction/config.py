"""
Experiment configuration.

Configs are nested dicts turned into an OmegaConf DictConfig. Presets live in
configs/*.py as a module-level CONFIG dict; load_config() merges
defaults <- preset <- overrides and validates the result. The build_*
factories turn a validated config into simulator objects.
"""

import importlib.util
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

from omegaconf import DictConfig, OmegaConf

from dayauction.exceptions import ConfigurationError
from dayauction.insider import InsiderEvent
from dayauction.monte_carlo import EXECUTORS, MonteCarloAggregator
from dayauction.order_generator import OrderBookGenerator
from dayauction.orders import Side
from dayauction.participants import ConstantCount, InsiderCountSchedule
from dayauction.simulation import SingleRunSimulator

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

DEFAULT_CONFIG: dict[str, Any] = {
    "experiment": {
        "name": "insider_baseline",
        "n_simulations": 1000,
        "n_days": 500,
        "base_seed": 42,
        "executor": "process",
        "max_workers": None,
        "log_level": "INFO",
        "output_dir": "results",
        "log_events": False,
    },
    "market": {
        "seed_price": 100.0,
        "num_buyers": 100,
        "num_sellers": 100,
        "discount_min": 3,
        "discount_max": 6,
        "price_sigma": 5.0,
        "quantity_min": 100,
        "quantity_max": 1000,
        "shared_spread": False,
    },
    "insider": {
        "enabled": False,
        "day": 150,
        "side": "buy",
        "notional": 10.0,
        "richness": 1000.0,
        "count": 1,
        "window": 30,
        "boost": 3.0,
    },
}


def load_preset(path: str | Path) -> dict[str, Any]:
    """
    Load the CONFIG dict from a Python preset file.

    Raises:
        ConfigurationError: If the file is missing or defines no CONFIG dict
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Configuration file not found: {path}")

    spec = importlib.util.spec_from_file_location(path.stem, path)
    if spec is None or spec.loader is None:
        raise ConfigurationError(f"Could not create module spec for {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    logger.debug(f"Loaded preset from {path}")

    config = getattr(module, "CONFIG", None)
    if not isinstance(config, dict):
        raise ConfigurationError(f"'CONFIG' dictionary not found or is not a dict in {path}")
    return config


def load_config(
    source: str | Path | Mapping[str, Any] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> DictConfig:
    """
    Build a validated config.

    Args:
        source: Preset file path or dict; defaults only if None
        overrides: Nested dict applied last (e.g. from CLI flags)

    Returns:
        Merged DictConfig

    Raises:
        ConfigurationError: If any value is invalid
    """
    cfg = OmegaConf.create(deepcopy(DEFAULT_CONFIG))
    if source is not None:
        preset = load_preset(source) if isinstance(source, (str, Path)) else dict(source)
        cfg = OmegaConf.merge(cfg, OmegaConf.create(preset))
    if overrides:
        cfg = OmegaConf.merge(cfg, OmegaConf.create(dict(overrides)))
    cfg.experiment.log_level = str(cfg.experiment.log_level).upper()

    validate_config(cfg)
    return cfg


def validate_config(cfg: DictConfig) -> None:
    """
    Check a config for values that would make runs meaningless.

    Raises:
        ConfigurationError: On the first invalid value found
    """
    exp = cfg.experiment
    market = cfg.market
    insider = cfg.insider

    if exp.n_days < 1:
        raise ConfigurationError(f"experiment.n_days must be >= 1, got {exp.n_days}")
    if exp.n_simulations < 1:
        raise ConfigurationError(f"experiment.n_simulations must be >= 1, got {exp.n_simulations}")
    if exp.base_seed < 0:
        raise ConfigurationError(f"experiment.base_seed must be non-negative, got {exp.base_seed}")
    if exp.executor not in EXECUTORS:
        raise ConfigurationError(f"experiment.executor must be one of {EXECUTORS}, got {exp.executor!r}")
    if str(exp.log_level).upper() not in LOG_LEVELS:
        raise ConfigurationError(f"experiment.log_level must be one of {LOG_LEVELS}, got {exp.log_level!r}")

    if market.num_buyers < 0 or market.num_sellers < 0:
        raise ConfigurationError("market.num_buyers and market.num_sellers must be non-negative")
    if market.discount_min > market.discount_max:
        raise ConfigurationError(
            f"market.discount_min ({market.discount_min}) exceeds discount_max ({market.discount_max})"
        )
    if market.quantity_min > market.quantity_max:
        raise ConfigurationError(
            f"market.quantity_min ({market.quantity_min}) exceeds quantity_max ({market.quantity_max})"
        )
    if market.price_sigma < 0:
        raise ConfigurationError(f"market.price_sigma must be non-negative, got {market.price_sigma}")

    if not insider.enabled:
        return

    try:
        Side.parse(insider.side)
    except ValueError as exc:
        raise ConfigurationError(f"insider.side: {exc}") from exc
    if not 1 <= insider.day <= exp.n_days:
        raise ConfigurationError(f"insider.day must be in 1..{exp.n_days}, got {insider.day}")
    if insider.day >= exp.n_days:
        raise ConfigurationError(
            f"insider.day ({insider.day}) leaves no post-event day within {exp.n_days} days"
        )
    if insider.count < 1:
        raise ConfigurationError(f"insider.count must be >= 1, got {insider.count}")
    if insider.richness <= 0:
        raise ConfigurationError(f"insider.richness must be positive, got {insider.richness}")
    if insider.window < 1:
        raise ConfigurationError(f"insider.window must be >= 1, got {insider.window}")


def build_generator(cfg: DictConfig) -> OrderBookGenerator:
    market = cfg.market
    return OrderBookGenerator(
        discount_min=market.discount_min,
        discount_max=market.discount_max,
        price_sigma=market.price_sigma,
        quantity_min=market.quantity_min,
        quantity_max=market.quantity_max,
        shared_spread=market.shared_spread,
    )


def build_insider_event(cfg: DictConfig) -> InsiderEvent | None:
    insider = cfg.insider
    if not insider.enabled:
        return None
    return InsiderEvent(
        day=insider.day,
        side=Side.parse(insider.side),
        notional=float(insider.notional),
        richness=float(insider.richness),
        count=insider.count,
    )


def build_simulator(cfg: DictConfig, event_logger=None) -> SingleRunSimulator:
    """
    Build the single run simulator described by a config.

    Baseline configs get constant participant counts; insider configs get
    InsiderCountSchedule on both sides (the schedule only boosts the
    insider's side).
    """
    market = cfg.market
    insider = build_insider_event(cfg)

    if insider is None:
        buyer_count = ConstantCount(market.num_buyers)
        seller_count = ConstantCount(market.num_sellers)
    else:
        schedule = dict(event_day=insider.day, window=cfg.insider.window, boost=cfg.insider.boost)
        buyer_count = InsiderCountSchedule(base=market.num_buyers, **schedule)
        seller_count = InsiderCountSchedule(base=market.num_sellers, **schedule)

    return SingleRunSimulator(
        n_days=cfg.experiment.n_days,
        buyer_count=buyer_count,
        seller_count=seller_count,
        generator=build_generator(cfg),
        insider=insider,
        seed_price=market.seed_price,
        window=cfg.insider.window,
        event_logger=event_logger,
    )


def build_aggregator(cfg: DictConfig, show_progress: bool | None = None) -> MonteCarloAggregator:
    exp = cfg.experiment
    return MonteCarloAggregator(
        simulator=build_simulator(cfg),
        n_simulations=exp.n_simulations,
        base_seed=exp.base_seed,
        executor=exp.executor,
        max_workers=exp.max_workers,
        show_progress=show_progress,
    )
