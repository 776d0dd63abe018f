"""
Unit Table - conversion ratios of the Zeilumara hierarchy.

Eight units, coarsest to finest:

    曜元 yaogen (era) > 幽曦 yuxi (archive) > 梦昼 dreamdiem (dreamday)
    > 幻环 reverloop (loop) > 思络 mindlace (weave) > 灵拍 lumibeat (beat)
    > 曜子 yaon

plus 星拍 xingbeat (visible beat), a display unit of 1000 beats that sits
outside the nested hierarchy.

Every radix is a constant. Compound ratios are derived by multiplication when
a table is built and never change afterwards.
"""

import logging
import math
from enum import Enum
from pathlib import Path

import yaml

from zeilumara import paths

logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

YAON_SECONDS = 1.036e-43
YAON_PER_BEAT = 432_000
BEAT_PER_WEAVE = 64
WEAVE_PER_LOOP = 6
LOOP_PER_DREAMDAY = 9
DREAMDAY_PER_ARCHIVE = 7
ARCHIVE_PER_ERA = 360
BEATS_PER_VISIBLE_BEAT = 1000


class UnitTableError(ValueError):
    """Raised when a unit table is built from invalid ratios."""

    pass


class Level(Enum):
    """Levels of the nested hierarchy, coarsest first."""

    ERA = "era"
    ARCHIVE = "archive"
    DREAMDAY = "dreamday"
    LOOP = "loop"
    WEAVE = "weave"
    BEAT = "beat"
    YAON = "yaon"

    @property
    def roman(self) -> str:
        return _ROMAN_NAMES[self]

    @property
    def chinese(self) -> str:
        return _CHINESE_NAMES[self]

    def coarser(self) -> "Level | None":
        """The level one step up, or None for ERA."""
        idx = LEVELS.index(self)
        return LEVELS[idx - 1] if idx > 0 else None


LEVELS: tuple[Level, ...] = tuple(Level)

_ROMAN_NAMES = {
    Level.ERA: "Yaogen",
    Level.ARCHIVE: "Yuxi",
    Level.DREAMDAY: "Dreamdiem",
    Level.LOOP: "Reverloop",
    Level.WEAVE: "Mindlace",
    Level.BEAT: "Lumibeat",
    Level.YAON: "Yaon",
}

_CHINESE_NAMES = {
    Level.ERA: "曜元",
    Level.ARCHIVE: "幽曦",
    Level.DREAMDAY: "梦昼",
    Level.LOOP: "幻环",
    Level.WEAVE: "思络",
    Level.BEAT: "灵拍",
    Level.YAON: "曜子",
}

# Keys used by config/units.yaml, finest first
_RADIX_KEYS = {
    Level.YAON: "yaon_per_beat",
    Level.BEAT: "beat_per_weave",
    Level.WEAVE: "weave_per_loop",
    Level.LOOP: "loop_per_dreamday",
    Level.DREAMDAY: "dreamday_per_archive",
    Level.ARCHIVE: "archive_per_era",
}


# =============================================================================
# UNIT TABLE
# =============================================================================


class UnitTable:
    """
    Read-only table of radices and derived compound sizes.

    ``radix(level)`` is how many units of ``level`` make one unit of the next
    coarser level. ``yaon_per(level)`` is the size of one unit of ``level``
    measured in yaon.
    """

    __slots__ = ("_yaon_seconds", "_radices", "_yaon_per", "_beats_per_visible_beat")

    def __init__(
        self,
        yaon_seconds: float = YAON_SECONDS,
        yaon_per_beat: int = YAON_PER_BEAT,
        beat_per_weave: int = BEAT_PER_WEAVE,
        weave_per_loop: int = WEAVE_PER_LOOP,
        loop_per_dreamday: int = LOOP_PER_DREAMDAY,
        dreamday_per_archive: int = DREAMDAY_PER_ARCHIVE,
        archive_per_era: int = ARCHIVE_PER_ERA,
        beats_per_visible_beat: int = BEATS_PER_VISIBLE_BEAT,
    ):
        if isinstance(yaon_seconds, bool) or not isinstance(yaon_seconds, int | float):
            raise UnitTableError(f"yaon_seconds must be a number, got {yaon_seconds!r}")
        if not math.isfinite(yaon_seconds) or yaon_seconds <= 0:
            raise UnitTableError(f"yaon_seconds must be positive and finite, got {yaon_seconds!r}")

        radices = {
            Level.YAON: yaon_per_beat,
            Level.BEAT: beat_per_weave,
            Level.WEAVE: weave_per_loop,
            Level.LOOP: loop_per_dreamday,
            Level.DREAMDAY: dreamday_per_archive,
            Level.ARCHIVE: archive_per_era,
        }
        for level, value in radices.items():
            _check_radix(_RADIX_KEYS[level], value)
        _check_radix("beats_per_visible_beat", beats_per_visible_beat)

        self._yaon_seconds = float(yaon_seconds)
        self._radices = radices
        self._beats_per_visible_beat = beats_per_visible_beat

        # Compound sizes, finest to coarsest
        yaon_per = {Level.YAON: 1}
        size = 1
        for level in reversed(LEVELS[:-1]):
            size *= radices[LEVELS[LEVELS.index(level) + 1]]
            yaon_per[level] = size
        self._yaon_per = yaon_per

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def yaon_seconds(self) -> float:
        """Duration of the base unit in linear seconds."""
        return self._yaon_seconds

    def radix(self, level: Level) -> int | None:
        """Units of ``level`` per unit of the next coarser level; None for ERA."""
        return self._radices.get(level)

    def yaon_per(self, level: Level) -> int:
        """Size of one ``level`` unit in yaon."""
        return self._yaon_per[level]

    def seconds_per(self, level: Level) -> float:
        """Size of one ``level`` unit in linear seconds."""
        return self._yaon_per[level] * self._yaon_seconds

    @property
    def beats_per_visible_beat(self) -> int:
        return self._beats_per_visible_beat

    @property
    def yaon_per_visible_beat(self) -> int:
        return self._yaon_per[Level.BEAT] * self._beats_per_visible_beat

    def as_dict(self) -> dict:
        """Plain representation, same keys as config/units.yaml."""
        return {
            "yaon_seconds": self._yaon_seconds,
            "radices": {_RADIX_KEYS[level]: value for level, value in self._radices.items()},
            "beats_per_visible_beat": self._beats_per_visible_beat,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnitTable):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def __hash__(self) -> int:
        return hash((self._yaon_seconds, tuple(self._radices.values()), self._beats_per_visible_beat))

    def __repr__(self) -> str:
        radices = "/".join(str(self._radices[level]) for level in reversed(LEVELS[1:]))
        return f"UnitTable(yaon_seconds={self._yaon_seconds!r}, radices={radices})"


def _check_radix(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise UnitTableError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise UnitTableError(f"{name} must be positive, got {value}")


DEFAULT_UNITS = UnitTable()


# =============================================================================
# CONFIG LOADING
# =============================================================================


def load_unit_table(config_path: Path | None = None) -> UnitTable:
    """
    Build a unit table from YAML.

    Missing file falls back to the defaults. Malformed content or invalid
    ratios raise UnitTableError.
    """
    if config_path is None:
        config_path = paths.units_config_path()

    if not config_path.exists():
        logger.warning("Unit table config not found at %s, using defaults", config_path)
        return DEFAULT_UNITS

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise UnitTableError(f"Malformed unit table config {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise UnitTableError(f"Unit table config {config_path} must be a mapping")

    radices = data.get("radices") or {}
    if not isinstance(radices, dict):
        raise UnitTableError(f"'radices' in {config_path} must be a mapping")
    unknown = set(radices) - set(_RADIX_KEYS.values())
    if unknown:
        raise UnitTableError(f"Unknown radix keys in {config_path}: {sorted(unknown)}")

    table = UnitTable(
        yaon_seconds=data.get("yaon_seconds", YAON_SECONDS),
        beats_per_visible_beat=data.get("beats_per_visible_beat", BEATS_PER_VISIBLE_BEAT),
        **radices,
    )
    logger.info("Loaded unit table from %s: %r", config_path, table)
    return table
