"""
Insider order injection.

On the event day the first `count` orders on the insider's side are replaced
by the insider's own orders, priced at reference +/- notional / 2 (a buyer
insider bids above the market, a seller insider asks below it) with the
insider's full quantity (`richness`). The replacement happens before the
book is sorted, so the insider orders take priority purely by price.

Two snapshots are built from the same draws:

- actual: the book the market really clears
- counterfactual: the same book with the insider's orders at zero quantity,
  i.e. the day as it would have traded without the insider

The insider's orders are tracked by order_id, never by price.
"""

from dataclasses import dataclass

import numpy as np

from dayauction.exceptions import InsiderLookupError
from dayauction.order_generator import RawOrders
from dayauction.orders import DayBook, Side, Trade


@dataclass(frozen=True)
class InsiderEvent:
    """
    Parameters of the informed trader, fixed for a whole run.

    Attributes:
        day: Trading day on which the insider enters (1-indexed)
        side: Side the insider trades on
        notional: Size of the news; the insider prices notional / 2 away from the reference
        richness: Quantity of each insider order
        count: Number of insider orders
    """

    day: int
    side: Side
    notional: float
    richness: float
    count: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "side", Side.parse(self.side))
        if self.day < 1:
            raise ValueError(f"insider day must be >= 1, got {self.day}")
        if self.count < 1:
            raise ValueError(f"insider count must be >= 1, got {self.count}")
        if self.richness <= 0:
            raise ValueError(f"insider richness must be positive, got {self.richness}")

    def order_price(self, reference_price: float) -> float:
        """Price of the insider's orders given the previous close."""
        offset = 0.5 * self.notional
        return reference_price + offset if self.side is Side.BUY else reference_price - offset


@dataclass(frozen=True)
class InjectedBook:
    """Actual and counterfactual books for the event day."""

    actual: DayBook
    counterfactual: DayBook
    side: Side
    insider_ids: tuple[int, ...]
    insider_price: float


@dataclass(frozen=True)
class InsiderVolumes:
    """
    Traded volumes on the event day used for loss attribution.

    Attributes:
        insider_fill_volume: Volume traded by the insider's own orders
        actual_buyer_volume: Volume bought by non-insider buyers in the actual book
        actual_seller_volume: Volume sold by non-insider sellers in the actual book
        counterfactual_volume: Volume traded in the counterfactual book
    """

    insider_fill_volume: float
    actual_buyer_volume: float
    actual_seller_volume: float
    counterfactual_volume: float


class InsiderInjector:
    """Applies an InsiderEvent to the event day's orders."""

    def __init__(self, event: InsiderEvent) -> None:
        self.event = event

    def applies(self, day: int) -> bool:
        return day == self.event.day

    def inject(self, raw: RawOrders, reference_price: float) -> InjectedBook:
        """
        Replace the first `count` orders on the insider's side and build both books.

        Args:
            raw: The day's unsorted orders (not modified)
            reference_price: Previous closing price

        Returns:
            InjectedBook with actual and counterfactual snapshots

        Raises:
            InsiderLookupError: If the insider's side has fewer orders than
                the insider needs, or an insider order is missing after sorting
        """
        event = self.event
        side = event.side

        buyer_prices = np.array(raw.buyer_prices, dtype=np.float64)
        buyer_quantities = np.array(raw.buyer_quantities, dtype=np.float64)
        seller_prices = np.array(raw.seller_prices, dtype=np.float64)
        seller_quantities = np.array(raw.seller_quantities, dtype=np.float64)

        if side is Side.BUY:
            prices, quantities = buyer_prices, buyer_quantities
        else:
            prices, quantities = seller_prices, seller_quantities

        if prices.size < event.count:
            raise InsiderLookupError(
                f"day {event.day}: {side.value} side has {prices.size} orders, "
                f"insider needs {event.count}"
            )

        insider_price = event.order_price(reference_price)
        prices[: event.count] = insider_price
        quantities[: event.count] = event.richness
        insider_ids = tuple(range(event.count))

        actual = DayBook.from_arrays(buyer_prices, buyer_quantities, seller_prices, seller_quantities)
        try:
            counterfactual = actual.with_zero_quantity(side, insider_ids)
        except KeyError as exc:
            raise InsiderLookupError(f"day {event.day}: {exc}") from exc

        return InjectedBook(
            actual=actual,
            counterfactual=counterfactual,
            side=side,
            insider_ids=insider_ids,
            insider_price=insider_price,
        )

    def attribute(
        self,
        injected: InjectedBook,
        actual_trades: list[Trade],
        counterfactual_trades: list[Trade],
    ) -> InsiderVolumes:
        """Split the event day's volume between the insider and everyone else."""
        insider_ids = set(injected.insider_ids)
        insider_fill = 0.0
        buyer_volume = 0.0
        seller_volume = 0.0

        for trade in actual_trades:
            buyer_is_insider = injected.side is Side.BUY and trade.buyer_id in insider_ids
            seller_is_insider = injected.side is Side.SELL and trade.seller_id in insider_ids
            if buyer_is_insider or seller_is_insider:
                insider_fill += trade.quantity
            if not buyer_is_insider:
                buyer_volume += trade.quantity
            if not seller_is_insider:
                seller_volume += trade.quantity

        return InsiderVolumes(
            insider_fill_volume=insider_fill,
            actual_buyer_volume=buyer_volume,
            actual_seller_volume=seller_volume,
            counterfactual_volume=float(sum(t.quantity for t in counterfactual_trades)),
        )
