"""
dayauction/orderbook.py - Daily Double Auction Matching Engine

Clears one day's book with greedy priority matching:

- The current best buyer (highest bid) is paired with the current best
  seller (lowest ask) while bid >= ask
- Trade price is the arithmetic mean of the two order prices
- Trade quantity is min(buyer remaining, seller remaining)
- An order whose remaining quantity reaches zero leaves the book

Each trade's price depends on which two orders are paired, so the sequencing
(always best buyer against best seller) determines the closing price. Both
sides of a DayBook are pre-sorted, so the active set is just a cursor per
side; nothing is re-sorted or removed from an array during the loop.
"""

import logging

from dayauction.orders import DayBook, DayResult, Trade

logger = logging.getLogger(__name__)


def closing_price(trades: list[Trade], previous_close: float) -> tuple[float, bool]:
    """
    Closing price for a day.

    Args:
        trades: The day's trades in execution order
        previous_close: Closing price of the previous day

    Returns:
        (price, carried_forward). The price is the mean of the trade prices;
        a day without trades carries the previous close forward.
    """
    if not trades:
        return float(previous_close), True
    return float(sum(t.price for t in trades) / len(trades)), False


class DoubleAuctionMatcher:
    """
    Greedy price-priority matcher for a single trading day.

    Stateless: the book is never modified, remaining quantities live in
    working copies local to each call.
    """

    def match(self, book: DayBook) -> list[Trade]:
        """
        Match best buyer against best seller until the book stops crossing.

        Orders with zero quantity are not eligible and are stepped over.

        Args:
            book: The day's sorted order book

        Returns:
            Trades in execution order (possibly empty)
        """
        buyer_prices = book.buyer_prices.tolist()
        seller_prices = book.seller_prices.tolist()
        buyer_ids = book.buyer_ids.tolist()
        seller_ids = book.seller_ids.tolist()
        buyer_remaining = book.buyer_quantities.tolist()
        seller_remaining = book.seller_quantities.tolist()

        num_buyers = len(buyer_prices)
        num_sellers = len(seller_prices)
        b = 0
        s = 0
        trades: list[Trade] = []

        while True:
            while b < num_buyers and buyer_remaining[b] <= 0:
                b += 1
            while s < num_sellers and seller_remaining[s] <= 0:
                s += 1
            if b >= num_buyers or s >= num_sellers:
                break

            bid = buyer_prices[b]
            ask = seller_prices[s]
            if bid < ask:
                break

            quantity = min(buyer_remaining[b], seller_remaining[s])
            buyer_remaining[b] -= quantity
            seller_remaining[s] -= quantity

            trades.append(
                Trade(
                    buyer_id=buyer_ids[b],
                    seller_id=seller_ids[s],
                    price=(bid + ask) / 2.0,
                    quantity=quantity,
                )
            )

            if buyer_remaining[b] <= 0:
                b += 1
            if seller_remaining[s] <= 0:
                s += 1

        return trades

    def clear_day(self, book: DayBook, previous_close: float) -> DayResult:
        """
        Clear a book and compute its closing price.

        Args:
            book: The day's sorted order book
            previous_close: Price carried forward if nothing trades

        Returns:
            DayResult with trades and closing price
        """
        trades = self.match(book)
        price, carried = closing_price(trades, previous_close)
        if carried:
            logger.debug(
                f"No crossing orders ({book.num_buyers} buyers, {book.num_sellers} sellers); "
                f"carrying close {price:.4f} forward"
            )
        return DayResult(trades=trades, closing_price=price, carried_forward=carried)
