"""
Test fixtures for deterministic testing.

This module provides:
- COARSE_UNITS: a unit table whose beat is one linear second, so recurrence
  steps are visible in float linear time
- FixedClock: a settable stand-in for time.time
- make_event: ScheduledEvent factory
"""

from zeilumara.models import RepeatRule, ScheduledEvent, StructuredTime
from zeilumara.units import UnitTable

# 1 yaon = 1 ms, 1 beat = 1 s, 1 weave = 64 s, 1 loop = 384 s,
# 1 dreamday = 3456 s, 1 archive = 24192 s, 1 era = 8709120 s
COARSE_UNITS = UnitTable(yaon_seconds=0.001, yaon_per_beat=1000)


class FixedClock:
    """Callable clock returning a settable instant."""

    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_event(
    title: str = "Tea with the goddess",
    anchor: StructuredTime | None = None,
    repeats: RepeatRule | None = None,
    **kwargs,
) -> ScheduledEvent:
    return ScheduledEvent(
        title=title,
        anchor=anchor if anchor is not None else StructuredTime(),
        repeats=repeats,
        created_at=kwargs.pop("created_at", 0.0),
        **kwargs,
    )


__all__ = ["COARSE_UNITS", "FixedClock", "make_event"]
