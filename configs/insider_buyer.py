# Positive news: a single insider buys ahead of the announcement on day 150.
# After the event, 3 * notional extra buyers enter for 30 days.

CONFIG = {
    "experiment": {
        "name": "insider_buyer",
        "n_simulations": 1000,
        "n_days": 500,
        "base_seed": 42,
    },
    "insider": {
        "enabled": True,
        "day": 150,
        "side": "buy",
        "notional": 10.0,
        "richness": 1000.0,
        "count": 1,
        "window": 30,
        "boost": 3.0,
    },
}
