"""Game clock that pushes ticks to subscribers."""
from __future__ import annotations
from dataclasses import dataclass

from ..config import BIG_JUMP_THRESHOLD_HOURS, TICK_INTERVAL_HOURS
from .events import BigJump, EventBus, SimTick


@dataclass
class GameTime:
    """Tracks simulation time in game hours."""
    total_hours: float = 0.0

    HOURS_PER_DAY: int = 24
    START_YEAR: int = 2350
    DAYS_PER_YEAR: int = 365

    @property
    def total_days(self) -> float:
        return self.total_hours / self.HOURS_PER_DAY

    @property
    def day(self) -> int:
        """Day of year (1-365)."""
        return int(self.total_days % self.DAYS_PER_YEAR) + 1

    @property
    def year(self) -> int:
        return self.START_YEAR + int(self.total_days / self.DAYS_PER_YEAR)

    def __str__(self) -> str:
        return f"Year {self.year}, Day {self.day}"


class SimulationClock:
    """External clock stand-in for hosts without their own calendar.

    Converts elapsed game hours into SimTick pushes, or a single BigJump
    push when one advance exceeds the big-jump threshold. The economy only
    ever sees the pushed events.
    """

    def __init__(
        self,
        event_bus: EventBus,
        tick_interval_hours: float = TICK_INTERVAL_HOURS,
        big_jump_threshold_hours: float = BIG_JUMP_THRESHOLD_HOURS,
    ) -> None:
        if tick_interval_hours <= 0:
            raise ValueError("tick_interval_hours must be positive")
        self.event_bus = event_bus
        self.tick_interval_hours = tick_interval_hours
        self.big_jump_threshold_hours = big_jump_threshold_hours
        self.game_time = GameTime()
        self._pending_hours = 0.0

    def advance(self, hours: float) -> None:
        """Advance game time and push the resulting tick events."""
        if hours < 0:
            raise ValueError("Cannot advance the clock backwards")
        self.game_time.total_hours += hours

        if hours > self.big_jump_threshold_hours:
            self.event_bus.publish(BigJump(hours=hours))
            return

        self._pending_hours += hours
        # Small epsilon so 4 x 0.25h counts as a whole tick despite float error
        ticks = int(self._pending_hours / self.tick_interval_hours + 1e-9)
        if ticks <= 0:
            return
        self._pending_hours = max(0.0, self._pending_hours - ticks * self.tick_interval_hours)
        self.event_bus.publish(SimTick(ticks_elapsed=ticks))
