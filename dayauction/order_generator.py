"""
Order Book Generator.

Draws one day's randomized buy and sell orders around the previous closing
price. Buyers are priced below the reference and sellers above it:

    buyer price  = reference - U{discount_min..discount_max} + N(0, price_sigma^2)
    seller price = reference + U{discount_min..discount_max} + N(0, price_sigma^2)
    quantity     = U{quantity_min..quantity_max}

so the book has a bid-ask spread in expectation while individual orders can
still cross. With shared_spread the integer discount is drawn once per side
per day instead of once per order.
"""

from dataclasses import dataclass

import numpy as np
from numpy.random import Generator

from dayauction.orders import DayBook


@dataclass
class RawOrders:
    """
    Orders for one day in generation order, before sorting.

    Position i on a side is that order's id once the book is built.
    """

    buyer_prices: np.ndarray
    buyer_quantities: np.ndarray
    seller_prices: np.ndarray
    seller_quantities: np.ndarray

    def to_book(self) -> DayBook:
        return DayBook.from_arrays(
            self.buyer_prices,
            self.buyer_quantities,
            self.seller_prices,
            self.seller_quantities,
        )


class OrderBookGenerator:
    """
    Generates a day's order book from participant counts and a reference price.

    The generator holds no random state: every draw comes from the Generator
    passed in, so runs that own separate generators never interact.
    """

    def __init__(
        self,
        discount_min: int = 3,
        discount_max: int = 6,
        price_sigma: float = 5.0,
        quantity_min: int = 100,
        quantity_max: int = 1000,
        shared_spread: bool = False,
    ) -> None:
        if discount_min > discount_max:
            raise ValueError(
                f"discount_min ({discount_min}) must not exceed discount_max ({discount_max})"
            )
        if quantity_min > quantity_max:
            raise ValueError(
                f"quantity_min ({quantity_min}) must not exceed quantity_max ({quantity_max})"
            )
        if price_sigma < 0:
            raise ValueError(f"price_sigma must be non-negative, got {price_sigma}")

        self.discount_min = discount_min
        self.discount_max = discount_max
        self.price_sigma = price_sigma
        self.quantity_min = quantity_min
        self.quantity_max = quantity_max
        self.shared_spread = shared_spread

    def _discounts(self, n: int, rng: Generator) -> np.ndarray | int:
        # rng.integers(low, high) -> [low, high)
        if self.shared_spread:
            return int(rng.integers(self.discount_min, self.discount_max + 1))
        return rng.integers(self.discount_min, self.discount_max + 1, size=n)

    def _quantities(self, n: int, rng: Generator) -> np.ndarray:
        return rng.integers(self.quantity_min, self.quantity_max + 1, size=n).astype(np.float64)

    def draw_orders(
        self,
        num_buyers: int,
        num_sellers: int,
        reference_price: float,
        rng: Generator,
    ) -> RawOrders:
        """
        Draw unsorted orders for one day.

        Args:
            num_buyers: Number of buy orders (may be 0)
            num_sellers: Number of sell orders (may be 0)
            reference_price: Previous closing price
            rng: Random source owned by the calling run

        Returns:
            RawOrders in generation order
        """
        if num_buyers < 0 or num_sellers < 0:
            raise ValueError(
                f"participant counts must be non-negative, got "
                f"buyers={num_buyers}, sellers={num_sellers}"
            )

        buyer_prices = (
            reference_price
            - self._discounts(num_buyers, rng)
            + rng.normal(0.0, self.price_sigma, size=num_buyers)
        )
        seller_prices = (
            reference_price
            + self._discounts(num_sellers, rng)
            + rng.normal(0.0, self.price_sigma, size=num_sellers)
        )

        return RawOrders(
            buyer_prices=np.asarray(buyer_prices, dtype=np.float64),
            buyer_quantities=self._quantities(num_buyers, rng),
            seller_prices=np.asarray(seller_prices, dtype=np.float64),
            seller_quantities=self._quantities(num_sellers, rng),
        )

    def generate(
        self,
        num_buyers: int,
        num_sellers: int,
        reference_price: float,
        rng: Generator,
    ) -> DayBook:
        """Draw a day's orders and return them as a sorted book."""
        return self.draw_orders(num_buyers, num_sellers, reference_price, rng).to_book()
