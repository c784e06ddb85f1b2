# tests/property/test_matching_properties.py
"""
Property-based tests for DoubleAuctionMatcher invariants using Hypothesis.

These tests verify that matching never over-fills an order, never trades a
pair outside its bid/ask, and always stops with an uncrossed residual book,
across arbitrary books rather than hand-picked examples.
"""

from collections import defaultdict

import numpy as np
from hypothesis import given, settings
from hypothesis import strategies as st

from dayauction.orderbook import DoubleAuctionMatcher
from dayauction.orders import DayBook

# =============================================================================
# Strategies for generating test data
# =============================================================================

prices = st.floats(min_value=50.0, max_value=150.0, allow_nan=False, allow_infinity=False)
quantities = st.integers(min_value=0, max_value=1000).map(float)


@st.composite
def day_books(draw):
    """Generate an unsorted day of orders and its DayBook."""
    num_buyers = draw(st.integers(min_value=0, max_value=25))
    num_sellers = draw(st.integers(min_value=0, max_value=25))
    bp = draw(st.lists(prices, min_size=num_buyers, max_size=num_buyers))
    bq = draw(st.lists(quantities, min_size=num_buyers, max_size=num_buyers))
    sp = draw(st.lists(prices, min_size=num_sellers, max_size=num_sellers))
    sq = draw(st.lists(quantities, min_size=num_sellers, max_size=num_sellers))
    return DayBook.from_arrays(np.array(bp), np.array(bq), np.array(sp), np.array(sq))


def orders_by_id(book: DayBook):
    buyers = {
        int(i): (float(p), float(q))
        for i, p, q in zip(book.buyer_ids, book.buyer_prices, book.buyer_quantities)
    }
    sellers = {
        int(i): (float(p), float(q))
        for i, p, q in zip(book.seller_ids, book.seller_prices, book.seller_quantities)
    }
    return buyers, sellers


# =============================================================================
# Property Tests: Matching Invariants
# =============================================================================


class TestMatchingInvariants:
    """Property tests for the greedy matcher."""

    @given(day_books())
    @settings(max_examples=200)
    def test_no_order_is_overfilled(self, book):
        trades = DoubleAuctionMatcher().match(book)
        buyers, sellers = orders_by_id(book)

        bought = defaultdict(float)
        sold = defaultdict(float)
        for trade in trades:
            assert trade.quantity > 0
            bought[trade.buyer_id] += trade.quantity
            sold[trade.seller_id] += trade.quantity

        for order_id, filled in bought.items():
            assert filled <= buyers[order_id][1]
        for order_id, filled in sold.items():
            assert filled <= sellers[order_id][1]

    @given(day_books())
    @settings(max_examples=200)
    def test_trade_count_is_bounded(self, book):
        trades = DoubleAuctionMatcher().match(book)
        # Every trade exhausts at least one order
        assert len(trades) <= book.num_buyers + book.num_sellers

    @given(day_books())
    @settings(max_examples=200)
    def test_trade_price_within_pair(self, book):
        trades = DoubleAuctionMatcher().match(book)
        buyers, sellers = orders_by_id(book)

        for trade in trades:
            bid = buyers[trade.buyer_id][0]
            ask = sellers[trade.seller_id][0]
            assert bid >= ask
            assert ask <= trade.price <= bid

    @given(day_books())
    @settings(max_examples=200)
    def test_residual_book_does_not_cross(self, book):
        trades = DoubleAuctionMatcher().match(book)
        buyers, sellers = orders_by_id(book)

        remaining_buy = {i: q for i, (_, q) in buyers.items()}
        remaining_sell = {i: q for i, (_, q) in sellers.items()}
        for trade in trades:
            remaining_buy[trade.buyer_id] -= trade.quantity
            remaining_sell[trade.seller_id] -= trade.quantity

        open_bids = [buyers[i][0] for i, q in remaining_buy.items() if q > 0]
        open_asks = [sellers[i][0] for i, q in remaining_sell.items() if q > 0]
        if open_bids and open_asks:
            assert max(open_bids) < min(open_asks)

    @given(day_books())
    @settings(max_examples=100)
    def test_matching_does_not_mutate_book(self, book):
        before = (book.buyer_quantities.copy(), book.seller_quantities.copy())
        DoubleAuctionMatcher().match(book)
        np.testing.assert_array_equal(book.buyer_quantities, before[0])
        np.testing.assert_array_equal(book.seller_quantities, before[1])

    @given(day_books(), st.floats(min_value=1.0, max_value=200.0))
    @settings(max_examples=100)
    def test_closing_price_is_mean_or_carried(self, book, previous_close):
        result = DoubleAuctionMatcher().clear_day(book, previous_close)
        if result.trades:
            assert not result.carried_forward
            assert result.closing_price == sum(t.price for t in result.trades) / len(result.trades)
        else:
            assert result.carried_forward
            assert result.closing_price == previous_close
