"""
Order book snapshots for one trading day.

A DayBook holds both sides of the day's orders as read-only numpy arrays:

- Buyers sorted by descending price (best bid first)
- Sellers sorted by ascending price (best ask first)

Ties keep generation order (stable sort), so priority is price-then-arrival.
Every order carries its generation index (order_id) on its side, which is the
only handle used to find a specific order after sorting.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np


class Side(str, Enum):
    """Side of an order."""

    BUY = "buy"
    SELL = "sell"

    @classmethod
    def parse(cls, value: "str | Side") -> "Side":
        """Accept a Side or its (case-insensitive) name."""
        if isinstance(value, Side):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown side: {value!r} (expected 'buy' or 'sell')") from None


@dataclass(frozen=True)
class Trade:
    """One match between a buyer and a seller."""

    buyer_id: int
    seller_id: int
    price: float
    quantity: float


@dataclass(frozen=True)
class DayResult:
    """Outcome of clearing one day's book."""

    trades: list[Trade]
    closing_price: float
    carried_forward: bool = False

    @property
    def prices(self) -> list[float]:
        return [t.price for t in self.trades]

    @property
    def volume(self) -> float:
        return float(sum(t.quantity for t in self.trades))

    @property
    def num_trades(self) -> int:
        return len(self.trades)


def _frozen(values: Sequence[float] | np.ndarray, dtype: type) -> np.ndarray:
    arr = np.array(values, dtype=dtype)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class DayBook:
    """
    Immutable snapshot of one day's orders.

    Attributes:
        buyer_prices: Bid prices, descending
        buyer_quantities: Bid quantities aligned with buyer_prices
        buyer_ids: Generation index of each bid
        seller_prices: Ask prices, ascending
        seller_quantities: Ask quantities aligned with seller_prices
        seller_ids: Generation index of each ask
    """

    buyer_prices: np.ndarray
    buyer_quantities: np.ndarray
    buyer_ids: np.ndarray
    seller_prices: np.ndarray
    seller_quantities: np.ndarray
    seller_ids: np.ndarray

    @classmethod
    def from_arrays(
        cls,
        buyer_prices: Sequence[float] | np.ndarray,
        buyer_quantities: Sequence[float] | np.ndarray,
        seller_prices: Sequence[float] | np.ndarray,
        seller_quantities: Sequence[float] | np.ndarray,
    ) -> "DayBook":
        """
        Build a sorted book from orders given in generation order.

        Args:
            buyer_prices: Bid prices; position i becomes buyer order_id i
            buyer_quantities: Bid quantities
            seller_prices: Ask prices; position j becomes seller order_id j
            seller_quantities: Ask quantities

        Raises:
            ValueError: If prices and quantities differ in length on a side
        """
        bp = np.asarray(buyer_prices, dtype=np.float64)
        bq = np.asarray(buyer_quantities, dtype=np.float64)
        sp = np.asarray(seller_prices, dtype=np.float64)
        sq = np.asarray(seller_quantities, dtype=np.float64)

        if bp.shape != bq.shape:
            raise ValueError(
                f"buyer prices ({bp.size}) and quantities ({bq.size}) differ in length"
            )
        if sp.shape != sq.shape:
            raise ValueError(
                f"seller prices ({sp.size}) and quantities ({sq.size}) differ in length"
            )

        # Stable sorts keep arrival order among equal prices
        buy_order = np.argsort(-bp, kind="stable")
        sell_order = np.argsort(sp, kind="stable")

        return cls(
            buyer_prices=_frozen(bp[buy_order], np.float64),
            buyer_quantities=_frozen(bq[buy_order], np.float64),
            buyer_ids=_frozen(buy_order, np.int64),
            seller_prices=_frozen(sp[sell_order], np.float64),
            seller_quantities=_frozen(sq[sell_order], np.float64),
            seller_ids=_frozen(sell_order, np.int64),
        )

    @property
    def num_buyers(self) -> int:
        return int(self.buyer_prices.size)

    @property
    def num_sellers(self) -> int:
        return int(self.seller_prices.size)

    def quantities(self, side: Side) -> np.ndarray:
        return self.buyer_quantities if side is Side.BUY else self.seller_quantities

    def ids(self, side: Side) -> np.ndarray:
        return self.buyer_ids if side is Side.BUY else self.seller_ids

    def index_of(self, side: Side, order_id: int) -> int:
        """
        Position of an order in its sorted side.

        Returns:
            Index into the side's sorted arrays, or -1 if no order has this id
        """
        hits = np.flatnonzero(self.ids(side) == order_id)
        return int(hits[0]) if hits.size else -1

    def with_zero_quantity(self, side: Side, order_ids: Sequence[int]) -> "DayBook":
        """
        Copy of this book with the given orders' quantity set to zero.

        Zero-quantity orders keep their slot but can never trade.

        Raises:
            KeyError: If an order_id is not on this side of the book
        """
        quantities = np.array(self.quantities(side), dtype=np.float64)
        for oid in order_ids:
            idx = self.index_of(side, oid)
            if idx < 0:
                raise KeyError(f"No {side.value} order with id {oid}")
            quantities[idx] = 0.0

        if side is Side.BUY:
            return DayBook(
                buyer_prices=self.buyer_prices,
                buyer_quantities=_frozen(quantities, np.float64),
                buyer_ids=self.buyer_ids,
                seller_prices=self.seller_prices,
                seller_quantities=self.seller_quantities,
                seller_ids=self.seller_ids,
            )
        return DayBook(
            buyer_prices=self.buyer_prices,
            buyer_quantities=self.buyer_quantities,
            buyer_ids=self.buyer_ids,
            seller_prices=self.seller_prices,
            seller_quantities=_frozen(quantities, np.float64),
            seller_ids=self.seller_ids,
        )
