"""
Data model for Zeilumara time and scheduled events.

Objects:
- StructuredTime (the eight-field mixed-radix moment)
- RepeatFrequency / RepeatRule (recurrence definition)
- ScheduledEvent (a reminder anchored in Zeilumara time)
- Settings (epoch and display preferences)

All objects are immutable. Conversions always return fresh values.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING

from zeilumara import config
from zeilumara.units import Level

if TYPE_CHECKING:
    from zeilumara.conversion import ConversionEngine
    from zeilumara.units import UnitTable


# =============================================================================
# STRUCTURED TIME
# =============================================================================


@dataclass(frozen=True)
class StructuredTime:
    """
    A moment in Zeilumara time.

    Hierarchy fields, coarsest first. Forward conversion keeps every field but
    ``era`` inside ``[0, radix)``. ``visible_beat`` is derived separately from
    the total elapsed yaon and is not part of the hierarchy.
    """

    era: int = 0  # 曜元 yaogen
    archive: int = 0  # 幽曦 yuxi
    dreamday: int = 0  # 梦昼 dreamdiem
    loop: int = 0  # 幻环 reverloop
    weave: int = 0  # 思络 mindlace
    beat: int = 0  # 灵拍 lumibeat
    yaon: int = 0  # 曜子
    visible_beat: int = 0  # 星拍 xingbeat

    def value_at(self, level: Level) -> int:
        return getattr(self, level.value)

    def with_field(self, level: Level, value: int) -> StructuredTime:
        return replace(self, **{level.value: value})

    def hierarchy(self) -> tuple[int, ...]:
        """Hierarchy fields coarsest first, without visible_beat."""
        return (self.era, self.archive, self.dreamday, self.loop, self.weave, self.beat, self.yaon)

    def formatted_chinese(self) -> str:
        return (
            f"曜元 {self.era} | 幽曦 {self.archive} | 梦昼 {self.dreamday}\n"
            f"幻环 {self.loop} | 思络 {self.weave} | 灵拍 {self.beat}"
        )

    def formatted_roman(self) -> str:
        return (
            f"Yaogen {self.era} | Yuxi {self.archive} | Dreamdiem {self.dreamday}\n"
            f"Reverloop {self.loop} | Mindlace {self.weave} | Lumibeat {self.beat}"
        )

    def compact(self) -> str:
        """Compact form for event lists: D<dreamday> R<loop> M<weave> L<beat>."""
        return f"D{self.dreamday} R{self.loop} M{self.weave} L{self.beat}"

    def short_time(self) -> str:
        """Clock-like form: loop:weave:beat."""
        return f"{self.loop:02d}:{self.weave:02d}:{self.beat:04d}"


# =============================================================================
# RECURRENCE
# =============================================================================


class RepeatFrequency(Enum):
    """How often an event repeats."""

    NONE = "none"
    EVERY_YAON = "every_yaon"
    EVERY_BEAT = "every_beat"
    EVERY_WEAVE = "every_weave"
    EVERY_LOOP = "every_loop"
    EVERY_DREAMDAY = "every_dreamday"
    EVERY_ARCHIVE = "every_archive"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def level(self) -> Level | None:
        """Hierarchy level stepped by this frequency, None for linear ones."""
        return _FREQUENCY_LEVELS.get(self)

    @property
    def is_zeilumara_unit(self) -> bool:
        return self in _FREQUENCY_LEVELS

    @property
    def is_linear(self) -> bool:
        return self in (RepeatFrequency.DAILY, RepeatFrequency.WEEKLY, RepeatFrequency.MONTHLY)

    @property
    def display_name(self) -> str:
        if self.level is not None:
            return f"Every {self.level.roman}"
        if self is RepeatFrequency.NONE:
            return "None"
        return f"{self.value.capitalize()} (Human)"


_FREQUENCY_LEVELS = {
    RepeatFrequency.EVERY_YAON: Level.YAON,
    RepeatFrequency.EVERY_BEAT: Level.BEAT,
    RepeatFrequency.EVERY_WEAVE: Level.WEAVE,
    RepeatFrequency.EVERY_LOOP: Level.LOOP,
    RepeatFrequency.EVERY_DREAMDAY: Level.DREAMDAY,
    RepeatFrequency.EVERY_ARCHIVE: Level.ARCHIVE,
}


@dataclass(frozen=True)
class RepeatRule:
    """
    Every ``interval`` units of ``frequency``, optionally until ``end``.

    An ``end`` earlier than the anchor is accepted; it simply produces no
    occurrences.
    """

    frequency: RepeatFrequency
    interval: int = 1
    end: float | None = None

    def __post_init__(self):
        if isinstance(self.interval, bool) or not isinstance(self.interval, int):
            raise ValueError(f"Repeat interval must be an integer, got {self.interval!r}")
        if self.interval < 1:
            raise ValueError(f"Repeat interval must be >= 1, got {self.interval}")


# =============================================================================
# EVENTS
# =============================================================================


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ScheduledEvent:
    """A reminder anchored at a Zeilumara moment."""

    title: str
    anchor: StructuredTime
    notes: str | None = None
    repeats: RepeatRule | None = None
    notification_enabled: bool = True
    created_at: float = field(default_factory=time.time)
    calendar_event_id: str | None = None
    id: str = field(default_factory=_new_id)

    def trigger_at(self, engine: ConversionEngine) -> float:
        """Linear time of the anchor under ``engine``'s epoch."""
        return engine.to_linear(self.anchor)

    def is_past(self, engine: ConversionEngine, now: float | None = None) -> bool:
        """True once the anchor is no longer in the future; such events get no reminders."""
        if now is None:
            now = time.time()
        return self.trigger_at(engine) <= now

    def with_changes(self, **changes) -> ScheduledEvent:
        return replace(self, **changes)


# =============================================================================
# SETTINGS
# =============================================================================


class DisplayLanguage(Enum):
    CHINESE = "chinese"
    ROMANIZED = "romanized"
    BOTH = "both"


class AppTheme(Enum):
    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


@dataclass(frozen=True)
class Settings:
    """User settings persisted alongside events."""

    epoch: float = config.DEFAULT_EPOCH
    display_language: DisplayLanguage = DisplayLanguage.ROMANIZED
    use_24_hour_format: bool = True
    notifications_enabled: bool = True
    calendar_integration_enabled: bool = False
    theme: AppTheme = AppTheme.AUTO

    def engine(self, units: UnitTable | None = None) -> ConversionEngine:
        """A conversion engine bound to this epoch."""
        from zeilumara.conversion import ConversionEngine

        if units is None:
            return ConversionEngine(self.epoch)
        return ConversionEngine(self.epoch, units)

    def format(self, moment: StructuredTime) -> str:
        """Render ``moment`` in the configured display language."""
        if self.display_language is DisplayLanguage.CHINESE:
            return moment.formatted_chinese()
        if self.display_language is DisplayLanguage.ROMANIZED:
            return moment.formatted_roman()
        return f"{moment.formatted_chinese()}\n{moment.formatted_roman()}"
