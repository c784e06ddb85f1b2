"""
Event Logger for single-run inspection.

Logs one record per trading day, plus a record for the insider event day,
for post-hoc analysis of how a run's price path formed.
"""

import json
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TextIO


@dataclass
class DayCloseEvent:
    """Closing state of one trading day."""

    run: int
    day: int
    num_buyers: int
    num_sellers: int
    num_trades: int
    volume: float
    closing_price: float
    carried_forward: bool


@dataclass
class InsiderDayEvent:
    """The insider's day: actual vs counterfactual outcome."""

    run: int
    day: int
    side: str
    insider_price: float
    closing_price: float
    theoretical_price: float
    insider_fill_volume: float
    actual_buyer_volume: float
    actual_seller_volume: float
    counterfactual_volume: float


class EventLogger:
    """
    Logs simulation events to JSONL format.

    Usage:
        with EventLogger(Path("logs/run_0_events.jsonl")) as events:
            simulator = SingleRunSimulator(..., event_logger=events)
            simulator.run(rng)
    """

    def __init__(self, output_path: Path):
        """
        Initialize the event logger.

        Args:
            output_path: Path to write JSONL file
        """
        self.output_path = output_path
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self._file: TextIO | None = None
        self._open()

    def _open(self) -> None:
        self._file = open(self.output_path, "w")

    def log_day(
        self,
        run: int,
        day: int,
        num_buyers: int,
        num_sellers: int,
        num_trades: int,
        volume: float,
        closing_price: float,
        carried_forward: bool,
    ) -> None:
        """Log the close of a trading day."""
        event = DayCloseEvent(
            run=run,
            day=day,
            num_buyers=num_buyers,
            num_sellers=num_sellers,
            num_trades=num_trades,
            volume=volume,
            closing_price=closing_price,
            carried_forward=carried_forward,
        )
        self._write_event(event)

    def log_insider_day(
        self,
        run: int,
        day: int,
        side: str,
        insider_price: float,
        closing_price: float,
        theoretical_price: float,
        insider_fill_volume: float,
        actual_buyer_volume: float,
        actual_seller_volume: float,
        counterfactual_volume: float,
    ) -> None:
        """Log the insider event day with its counterfactual."""
        event = InsiderDayEvent(
            run=run,
            day=day,
            side=side,
            insider_price=insider_price,
            closing_price=closing_price,
            theoretical_price=theoretical_price,
            insider_fill_volume=insider_fill_volume,
            actual_buyer_volume=actual_buyer_volume,
            actual_seller_volume=actual_seller_volume,
            counterfactual_volume=counterfactual_volume,
        )
        self._write_event(event)

    def _write_event(self, event: DayCloseEvent | InsiderDayEvent) -> None:
        """Write an event to the JSONL file."""
        if self._file is None:
            return

        data = asdict(event)
        data["event_type"] = "insider_day" if isinstance(event, InsiderDayEvent) else "day_close"
        self._file.write(json.dumps(data) + "\n")

    def flush(self) -> None:
        """Flush the output buffer."""
        if self._file:
            self._file.flush()

    def close(self) -> None:
        """Close the output file."""
        if self._file:
            self._file.close()
            self._file = None

    def __enter__(self) -> "EventLogger":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def load_events(log_path: Path) -> list[dict[str, object]]:
    """
    Load events from a JSONL file.

    Args:
        log_path: Path to the JSONL file

    Returns:
        List of event dictionaries
    """
    events = []
    with open(log_path) as f:
        for line in f:
            if line.strip():
                events.append(json.loads(line))
    return events
