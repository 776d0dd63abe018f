# Zeilumara Time - Core Library
"""
Mixed-radix alternative calendar and reminder scheduling.

Exports for api/, cli/ and other consumers.
"""

from .conversion import ConversionEngine
from .models import (
    AppTheme,
    DisplayLanguage,
    RepeatFrequency,
    RepeatRule,
    ScheduledEvent,
    Settings,
    StructuredTime,
)
from .omens import Omen, OmenKind, evaluate, first_omen
from .recurrence import Occurrence, RecurrenceExpander, advance
from .units import DEFAULT_UNITS, Level, UnitTable, UnitTableError, load_unit_table

__all__ = [
    "ConversionEngine",
    "StructuredTime",
    "RepeatFrequency",
    "RepeatRule",
    "ScheduledEvent",
    "Settings",
    "DisplayLanguage",
    "AppTheme",
    "RecurrenceExpander",
    "Occurrence",
    "advance",
    "Omen",
    "OmenKind",
    "evaluate",
    "first_omen",
    "UnitTable",
    "UnitTableError",
    "Level",
    "DEFAULT_UNITS",
    "load_unit_table",
]
