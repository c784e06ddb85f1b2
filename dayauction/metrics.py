"""
Welfare and price-path metrics.

Societal loss
=============
The insider's orders move the event day's price away from where the rest of
the market would have traded, and change how much the other participants
trade. The loss charges the volume the insider displaced on each side with
the gap between the counterfactual (no insider) closing price and the mean
closing price over the window after the event:

    buyer_loss  = (counterfactual_volume - actual_buyer_volume)  * (theoretical - post_event_mean)
    seller_loss = (counterfactual_volume - actual_seller_volume) * (theoretical - post_event_mean)
    total       = buyer_loss + seller_loss        (negated for a seller insider)

so that the sign always describes harm to the non-insider side.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from dayauction.insider import InsiderVolumes
from dayauction.orders import Side


@dataclass(frozen=True)
class LossBreakdown:
    """Societal loss split by side."""

    buyer_loss: float
    seller_loss: float
    total: float


def post_event_window(n_days: int, event_day: int, window: int) -> tuple[int, int]:
    """
    Path indices [start, stop) of the days after the event, clipped to the horizon.

    Raises:
        ValueError: If no post-event day falls inside the horizon
    """
    start = event_day + 1
    stop = min(event_day + window, n_days) + 1
    if start >= stop:
        raise ValueError(
            f"no post-event days: event on day {event_day} of {n_days} (window {window})"
        )
    return start, stop


def post_event_mean(path: Sequence[float] | np.ndarray, event_day: int, window: int = 30) -> float:
    """
    Mean closing price over days event_day+1 .. event_day+window.

    Args:
        path: Price path with the seed price at index 0
        event_day: Insider event day
        window: Number of post-event days

    Returns:
        Mean of the available post-event closes
    """
    prices = np.asarray(path, dtype=np.float64)
    start, stop = post_event_window(prices.size - 1, event_day, window)
    return float(np.mean(prices[start:stop]))


def societal_loss(
    volumes: InsiderVolumes,
    theoretical_price: float,
    post_mean: float,
    insider_side: Side,
) -> LossBreakdown:
    """
    Compute the societal loss attributed to the insider.

    Args:
        volumes: Event-day volume attribution
        theoretical_price: Counterfactual closing price on the event day
        post_mean: Mean closing price over the post-event window
        insider_side: Side the insider traded on

    Returns:
        LossBreakdown; the total is negated for a seller insider
    """
    gap = theoretical_price - post_mean
    buyer_loss = (volumes.counterfactual_volume - volumes.actual_buyer_volume) * gap
    seller_loss = (volumes.counterfactual_volume - volumes.actual_seller_volume) * gap

    total = buyer_loss + seller_loss
    if insider_side is Side.SELL:
        total = -total

    return LossBreakdown(buyer_loss=float(buyer_loss), seller_loss=float(seller_loss), total=float(total))


def select_illustrative_paths(paths: np.ndarray | Sequence[Sequence[float]], seed_price: float = 100.0) -> dict[str, int]:
    """
    Pick example runs by their final price.

    Returns:
        Indices of the "bearish" (lowest final price), "stable" (final price
        closest to seed_price) and "bullish" (highest final price) runs.
        Ties resolve to the earliest run.

    Raises:
        ValueError: If there are no paths
    """
    arr = np.asarray(paths, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[0] == 0:
        raise ValueError("need at least one price path")

    finals = arr[:, -1]
    return {
        "bearish": int(np.argmin(finals)),
        "stable": int(np.argmin(np.abs(finals - seed_price))),
        "bullish": int(np.argmax(finals)),
    }


def path_statistics(paths: np.ndarray) -> dict[str, np.ndarray]:
    """
    Per-day cross-sectional statistics of a (runs, days) path matrix.

    Returns:
        Dictionary with "mean", "std", "min" and "max" arrays, one value per day
    """
    if paths.shape[0] == 0:
        empty = np.full(paths.shape[1] if paths.ndim == 2 else 0, np.nan)
        return {"mean": empty, "std": empty, "min": empty, "max": empty}

    return {
        "mean": paths.mean(axis=0),
        "std": paths.std(axis=0, ddof=1) if paths.shape[0] > 1 else np.zeros(paths.shape[1]),
        "min": paths.min(axis=0),
        "max": paths.max(axis=0),
    }
