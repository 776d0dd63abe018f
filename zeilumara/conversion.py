"""
Conversion Engine - linear time <-> Zeilumara structured time.

One engine per epoch. The epoch is captured at construction and never
changes; build a new engine to move the zero point.

Elapsed yaon are computed as an exact rational of the two input floats, so
the decomposition below is plain integer arithmetic. Python's floored
``divmod`` keeps every remainder in ``[0, radix)`` for negative elapsed time,
which is what makes pre-epoch moments come out with non-negative fields and
a negative era.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from fractions import Fraction

from zeilumara import config
from zeilumara.models import StructuredTime
from zeilumara.units import DEFAULT_UNITS, LEVELS, Level, UnitTable

# A rational yaon count within this relative distance of an integer is that
# integer: the float input cannot tell the two apart.
_ROUNDOFF = Fraction(1, 2**50)

# At and above this magnitude the snap window reaches half a yaon, so snapping
# would turn truncation into round-to-nearest. Larger counts only truncate.
_SNAP_CEILING = 2**49


class ConversionEngine:
    """
    Converts between linear seconds and StructuredTime.

    Args:
        epoch: Zero point of the calendar in linear seconds
        units: Unit table supplying radices and the base-unit duration
    """

    __slots__ = ("_epoch", "_units", "_yaon_seconds")

    def __init__(self, epoch: float = config.DEFAULT_EPOCH, units: UnitTable = DEFAULT_UNITS):
        if not math.isfinite(epoch):
            raise ValueError(f"Epoch must be finite, got {epoch!r}")
        self._epoch = float(epoch)
        self._units = units
        self._yaon_seconds = Fraction(units.yaon_seconds)

    @property
    def epoch(self) -> float:
        return self._epoch

    @property
    def units(self) -> UnitTable:
        return self._units

    def __repr__(self) -> str:
        return f"ConversionEngine(epoch={self._epoch!r}, units={self._units!r})"

    # -------------------------------------------------------------------------
    # Linear -> structured
    # -------------------------------------------------------------------------

    def seconds_since_epoch(self, t: float) -> float:
        return t - self._epoch

    def elapsed_yaon(self, t: float) -> int:
        """
        Whole yaon elapsed since the epoch, truncated toward zero.

        Below 2**49 yaon a count within float round-off of an integer snaps to
        that integer first.
        """
        seconds = self.seconds_since_epoch(t)
        if not math.isfinite(seconds):
            raise ValueError(f"Linear time must be finite, got {t!r}")

        total = Fraction(seconds) / self._yaon_seconds
        if abs(total) < _SNAP_CEILING:
            nearest = round(total)
            if abs(total - nearest) <= abs(total) * _ROUNDOFF:
                return nearest
        return math.trunc(total)

    def to_structured(self, t: float) -> StructuredTime:
        units = self._units
        total = self.elapsed_yaon(t)

        # 星拍: parallel display counter, not reconciled with the hierarchy.
        # Truncates toward zero, so the last one before the epoch is 0.
        visible_beat = math.trunc(Fraction(total, units.yaon_per_visible_beat))

        fields = {}
        rest = total
        for level in reversed(LEVELS[1:]):
            rest, fields[level.value] = divmod(rest, units.radix(level))
        fields[Level.ERA.value] = rest

        return StructuredTime(visible_beat=visible_beat, **fields)

    def now(self, clock: Callable[[], float] = time.time) -> StructuredTime:
        return self.to_structured(clock())

    # -------------------------------------------------------------------------
    # Structured -> linear
    # -------------------------------------------------------------------------

    def total_yaon(self, s: StructuredTime) -> int:
        """Hierarchy fields folded into a single yaon count; visible_beat is ignored."""
        return sum(s.value_at(level) * self._units.yaon_per(level) for level in LEVELS)

    def to_linear(self, s: StructuredTime) -> float:
        exact = self.total_yaon(s) * self._yaon_seconds
        try:
            seconds = float(exact)
        except OverflowError:
            seconds = math.inf if exact > 0 else -math.inf
        return self._epoch + seconds

    def to_linear_parts(
        self,
        dreamday: int,
        loop: int,
        weave: int,
        beat: int,
        era: int = 0,
        archive: int = 0,
    ) -> float:
        """Inverse for the simplified day/loop/weave/beat component set."""
        return self.to_linear(
            StructuredTime(
                era=era,
                archive=archive,
                dreamday=dreamday,
                loop=loop,
                weave=weave,
                beat=beat,
            )
        )
