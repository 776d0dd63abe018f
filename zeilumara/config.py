"""
Centralized configuration for Zeilumara time.

All values that vary by deployment belong here.
Override via environment variables where marked.
"""

import os

# ============================================================
# Calendar
# ============================================================

DEFAULT_EPOCH: float = float(os.environ.get("ZEILUMARA_EPOCH", "1735689600"))
"""Zero point of the calendar in Unix seconds (2025-01-01T00:00:00Z)."""

# ============================================================
# Notifications
# ============================================================

PENDING_TRIGGER_CAP: int = int(os.environ.get("ZEILUMARA_PENDING_CAP", "64"))
"""Upper bound on simultaneously pending triggers in the notification center."""

MAX_OCCURRENCES_PER_SERIES: int = int(os.environ.get("ZEILUMARA_MAX_OCCURRENCES", "50"))
"""Occurrences expanded for a single repeating event series (leaves headroom under the cap)."""

RECURRENCE_HORIZON_SECONDS: float = 365 * 24 * 60 * 60
"""Expansion stops once an occurrence lies further than this past "now"."""

DEFAULT_NOTIFICATION_BODY: str = "Zeilumara event reminder"
"""Body text used for reminders of events without notes."""

NOTIFICATION_CATEGORY: str = "ZEILUMARA_EVENT"
"""Category attached to every trigger request."""

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("ZEILUMARA_LOG_LEVEL", "WARNING")
"""Root log level used by the CLI and API entry points."""
