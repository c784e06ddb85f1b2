"""
dayauction - Daily Double Auction Market and Insider Welfare Simulation

This package contains the market engine that forms a single good's price from
repeated daily double-auction clearing, and the Monte Carlo machinery used to
measure the welfare effect of an informed trader entering ahead of a
price-moving event.

Modules:
    orders: DayBook snapshots and trade records
    order_generator: Randomized daily order books
    insider: Insider order injection and counterfactual books
    orderbook: The greedy priority matching engine
    simulation: Day-by-day single run driver
    monte_carlo: Parallel aggregation of independent runs
"""

__version__ = "1.0.0"
