"""
Participant count schedules.

A schedule says how many buy (or sell) orders arrive on a given day.
Plain schedules are called as count(day); insider-mode schedules are called
as count(day, notional, is_insider_side, insider_count). Schedules are
classes rather than closures so they can be sent to worker processes.
"""


class ConstantCount:
    """The same number of participants every day, in either calling mode."""

    def __init__(self, count: int) -> None:
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        self.count = count

    def __call__(self, day: int, *args: object) -> int:
        return self.count

    def __repr__(self) -> str:
        return f"ConstantCount({self.count})"


class InsiderCountSchedule:
    """
    Participant counts around an insider event.

    For the insider's side:
    - event day: base + insider_count (the extra orders become the insider's)
    - the `window` days after the event: base + round(boost * notional), as the
      news becomes public and draws more traders to that side
    - any other day: base

    The other side always has `base` participants.
    """

    def __init__(self, base: int = 100, event_day: int = 150, window: int = 30, boost: float = 3.0) -> None:
        if base < 0:
            raise ValueError(f"base must be non-negative, got {base}")
        self.base = base
        self.event_day = event_day
        self.window = window
        self.boost = boost

    def __call__(self, day: int, notional: float, is_insider_side: bool, insider_count: int = 1) -> int:
        if not is_insider_side:
            return self.base
        if day == self.event_day:
            return self.base + insider_count
        if self.event_day < day <= self.event_day + self.window:
            return max(0, self.base + int(round(self.boost * notional)))
        return self.base

    def __repr__(self) -> str:
        return (
            f"InsiderCountSchedule(base={self.base}, event_day={self.event_day}, "
            f"window={self.window}, boost={self.boost})"
        )
