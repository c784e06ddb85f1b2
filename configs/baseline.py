# Baseline market: 100 buyers and 100 sellers every day, no insider.
# The mean path over many runs should stay flat around the seed price.

CONFIG = {
    "experiment": {
        "name": "baseline",
        "n_simulations": 1000,
        "n_days": 500,
        "base_seed": 42,
    },
    "market": {
        "num_buyers": 100,
        "num_sellers": 100,
    },
    "insider": {
        "enabled": False,
    },
}
