"""
Recurrence Expander - project repeating Zeilumara events onto linear time.

Only the six Zeilumara granularities are expanded here. Daily, weekly and
monthly rules step the civil calendar and are handed to the notification
center's native repeat support instead; ``none`` never repeats.

Expansion stops at the first of:
1. max_occurrences produced
2. an occurrence past the rule's end bound
3. an occurrence more than horizon_seconds past "now"
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from zeilumara import config
from zeilumara.conversion import ConversionEngine
from zeilumara.models import RepeatFrequency, RepeatRule, StructuredTime
from zeilumara.units import DEFAULT_UNITS, UnitTable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Occurrence:
    """One projected trigger of a repeating event."""

    index: int  # 1-based, the anchor itself is not an occurrence
    moment: StructuredTime
    trigger_at: float


def advance(
    moment: StructuredTime,
    frequency: RepeatFrequency,
    interval: int,
    units: UnitTable = DEFAULT_UNITS,
) -> StructuredTime:
    """
    Add ``interval`` units at ``frequency``'s level with carry.

    A carry that overflows the next level keeps propagating until it settles;
    era takes whatever is left. Finer fields are left as they are.
    """
    level = frequency.level
    if level is None:
        return moment

    value = moment.value_at(level) + interval
    result = moment
    while True:
        radix = units.radix(level)
        if radix is None:
            return result.with_field(level, value)
        carry, value = divmod(value, radix)
        result = result.with_field(level, value)
        if carry == 0:
            return result
        level = level.coarser()
        value = result.value_at(level) + carry


class RecurrenceExpander:
    """
    Lazily expands a repeat rule into future occurrences.

    Args:
        engine: Conversion engine used to bound occurrences in linear time
        max_occurrences: Hard cap per series (notification quota)
        horizon_seconds: How far past "now" occurrences may lie
        clock: Source of "now" when expand() is not given one
    """

    def __init__(
        self,
        engine: ConversionEngine,
        max_occurrences: int = config.MAX_OCCURRENCES_PER_SERIES,
        horizon_seconds: float = config.RECURRENCE_HORIZON_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        if max_occurrences < 1:
            raise ValueError(f"max_occurrences must be >= 1, got {max_occurrences}")
        if horizon_seconds <= 0:
            raise ValueError(f"horizon_seconds must be positive, got {horizon_seconds}")
        self.engine = engine
        self.max_occurrences = max_occurrences
        self.horizon_seconds = horizon_seconds
        self.clock = clock

    def expand(
        self,
        anchor: StructuredTime,
        rule: RepeatRule,
        now: float | None = None,
    ) -> Iterator[Occurrence]:
        """
        Yield occurrences after ``anchor``.

        Linear-calendar frequencies and ``none`` yield nothing, as does a rule
        whose end bound precedes the anchor.
        """
        if not rule.frequency.is_zeilumara_unit:
            return

        if now is None:
            now = self.clock()
        horizon = now + self.horizon_seconds

        if rule.end is not None and rule.end < self.engine.to_linear(anchor):
            logger.debug("Repeat rule ends before its anchor, no occurrences")
            return

        units = self.engine.units
        current = anchor
        for index in range(1, self.max_occurrences + 1):
            current = advance(current, rule.frequency, rule.interval, units)
            trigger_at = self.engine.to_linear(current)

            if rule.end is not None and trigger_at > rule.end:
                return
            if trigger_at > horizon:
                return

            yield Occurrence(index=index, moment=current, trigger_at=trigger_at)

    def occurrences(
        self,
        anchor: StructuredTime,
        rule: RepeatRule,
        now: float | None = None,
    ) -> list[Occurrence]:
        return list(self.expand(anchor, rule, now))
