"""Exception hierarchy for the day auction simulator."""


class DayAuctionError(Exception):
    """Base exception for all simulator errors."""
    pass


class ConfigurationError(DayAuctionError, ValueError):
    """Invalid simulation parameters."""
    pass


class SimulationError(DayAuctionError):
    """A single run could not be completed."""
    pass


class InsiderLookupError(SimulationError):
    """The injected insider order could not be located in the day's book."""
    pass
