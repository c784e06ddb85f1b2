# Negative news: the insider sells ahead of the announcement with a large order.

CONFIG = {
    "experiment": {
        "name": "insider_seller",
        "n_simulations": 1000,
        "n_days": 500,
        "base_seed": 42,
    },
    "insider": {
        "enabled": True,
        "day": 150,
        "side": "sell",
        "notional": 10.0,
        "richness": 5000.0,
        "count": 1,
    },
}
