"""
Single run simulator.

Drives the day loop for one independent price path:

1. Draw the day's orders around the previous close (seed price on day 1)
2. On the insider's day, inject the insider's orders and build the
   counterfactual book
3. Clear the book; the closing price is the mean trade price (or the
   previous close if nothing trades)
4. Append the close to the path
5. On the insider's day, also clear the counterfactual book and keep its
   close as the theoretical price

After the last day an insider run computes the societal loss over the
post-event window. Day i depends on day i-1's close, so the loop is strictly
sequential.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol

import numpy as np
from numpy.random import Generator

from dayauction.exceptions import ConfigurationError
from dayauction.insider import InsiderEvent, InsiderInjector, InsiderVolumes
from dayauction.metrics import LossBreakdown, post_event_mean, post_event_window, societal_loss
from dayauction.order_generator import OrderBookGenerator
from dayauction.orderbook import DoubleAuctionMatcher
from dayauction.orders import DayBook, DayResult, Side

if TYPE_CHECKING:
    from dayauction.event_logger import EventLogger

logger = logging.getLogger(__name__)

SEED_PRICE = 100.0


class Matcher(Protocol):
    def clear_day(self, book: DayBook, previous_close: float) -> DayResult: ...


@dataclass
class SimulationResult:
    """
    Outcome of one run.

    Attributes:
        path: Closing prices, index 0 is the seed price, length n_days + 1
        societal_loss: Total loss (insider runs only)
        loss: Per-side loss breakdown (insider runs only)
        volumes: Event-day volume attribution (insider runs only)
        theoretical_price: Counterfactual event-day close (insider runs only)
        carried_forward_days: Days with no trades
        run_index: Position of the run in its batch
    """

    path: np.ndarray
    societal_loss: float | None = None
    loss: LossBreakdown | None = None
    volumes: InsiderVolumes | None = None
    theoretical_price: float | None = None
    carried_forward_days: int = 0
    run_index: int = 0

    @property
    def final_price(self) -> float:
        return float(self.path[-1])


class SingleRunSimulator:
    """
    Runs one price path of n_days trading days.

    The simulator holds only configuration; each call to run() owns its
    path and books, and draws every random number from the Generator it is
    given.
    """

    def __init__(
        self,
        n_days: int,
        buyer_count: Callable[..., int],
        seller_count: Callable[..., int],
        generator: OrderBookGenerator | None = None,
        matcher: Matcher | None = None,
        insider: InsiderEvent | None = None,
        seed_price: float = SEED_PRICE,
        window: int = 30,
        event_logger: "EventLogger | None" = None,
    ) -> None:
        """
        Initialize the simulator.

        Args:
            n_days: Number of trading days
            buyer_count: Buy orders per day; called as count(day), or in insider
                mode as count(day, notional, is_insider_side, insider_count)
            seller_count: Sell orders per day, same calling convention
            generator: Order book generator (default parameters if None)
            matcher: Day clearing engine (DoubleAuctionMatcher if None)
            insider: Insider event, or None for a baseline run
            seed_price: Price before day 1
            window: Post-event days averaged in the loss
            event_logger: Optional EventLogger for per-day records

        Raises:
            ConfigurationError: If n_days < 1 or the insider event leaves no
                post-event day inside the horizon
        """
        if n_days < 1:
            raise ConfigurationError(f"n_days must be >= 1, got {n_days}")
        if window < 1:
            raise ConfigurationError(f"window must be >= 1, got {window}")
        if insider is not None:
            if insider.day > n_days:
                raise ConfigurationError(
                    f"insider day {insider.day} is beyond the horizon of {n_days} days"
                )
            try:
                post_event_window(n_days, insider.day, window)
            except ValueError as exc:
                raise ConfigurationError(str(exc)) from exc

        self.n_days = n_days
        self.buyer_count = buyer_count
        self.seller_count = seller_count
        self.generator = generator or OrderBookGenerator()
        self.matcher: Matcher = matcher or DoubleAuctionMatcher()
        self.insider = insider
        self.injector = InsiderInjector(insider) if insider is not None else None
        self.seed_price = float(seed_price)
        self.window = window
        self.event_logger = event_logger

    def _counts(self, day: int) -> tuple[int, int]:
        if self.insider is None:
            return int(self.buyer_count(day)), int(self.seller_count(day))

        event = self.insider
        num_buyers = self.buyer_count(day, event.notional, event.side is Side.BUY, event.count)
        num_sellers = self.seller_count(day, event.notional, event.side is Side.SELL, event.count)
        return int(num_buyers), int(num_sellers)

    def run(self, rng: Generator, run_index: int = 0) -> SimulationResult:
        """
        Simulate all days.

        Args:
            rng: Random source owned by this run
            run_index: Identifier used in logs and events

        Returns:
            SimulationResult for the run

        Raises:
            InsiderLookupError: If the insider's orders cannot be placed on the event day
        """
        path = [self.seed_price]
        carried_days = 0
        theoretical_price: float | None = None
        volumes: InsiderVolumes | None = None

        for day in range(1, self.n_days + 1):
            reference = path[-1]
            num_buyers, num_sellers = self._counts(day)
            raw = self.generator.draw_orders(num_buyers, num_sellers, reference, rng)

            if self.injector is not None and self.injector.applies(day):
                injected = self.injector.inject(raw, reference)
                result = self.matcher.clear_day(injected.actual, reference)
                counterfactual = self.matcher.clear_day(injected.counterfactual, reference)
                theoretical_price = counterfactual.closing_price
                volumes = self.injector.attribute(injected, result.trades, counterfactual.trades)

                if result.carried_forward:
                    logger.warning(f"Run {run_index}: no trades on insider day {day}")
                logger.debug(
                    f"Run {run_index} insider day {day}: close {result.closing_price:.4f}, "
                    f"theoretical {theoretical_price:.4f}, insider fills {volumes.insider_fill_volume:.0f}"
                )
                if self.event_logger is not None:
                    self.event_logger.log_insider_day(
                        run=run_index,
                        day=day,
                        side=injected.side.value,
                        insider_price=injected.insider_price,
                        closing_price=result.closing_price,
                        theoretical_price=theoretical_price,
                        insider_fill_volume=volumes.insider_fill_volume,
                        actual_buyer_volume=volumes.actual_buyer_volume,
                        actual_seller_volume=volumes.actual_seller_volume,
                        counterfactual_volume=volumes.counterfactual_volume,
                    )
            else:
                result = self.matcher.clear_day(raw.to_book(), reference)

            if result.carried_forward:
                carried_days += 1
            path.append(result.closing_price)

            if self.event_logger is not None:
                self.event_logger.log_day(
                    run=run_index,
                    day=day,
                    num_buyers=num_buyers,
                    num_sellers=num_sellers,
                    num_trades=result.num_trades,
                    volume=result.volume,
                    closing_price=result.closing_price,
                    carried_forward=result.carried_forward,
                )

        prices = np.asarray(path, dtype=np.float64)
        sim = SimulationResult(path=prices, carried_forward_days=carried_days, run_index=run_index)

        if self.insider is not None and volumes is not None and theoretical_price is not None:
            post_mean = post_event_mean(prices, self.insider.day, self.window)
            breakdown = societal_loss(volumes, theoretical_price, post_mean, self.insider.side)
            sim.loss = breakdown
            sim.societal_loss = breakdown.total
            sim.volumes = volumes
            sim.theoretical_price = theoretical_price

        return sim
