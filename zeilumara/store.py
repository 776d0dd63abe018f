"""
Event Store - JSON file persistence for events and settings.

Two documents under the data directory:
- zeilumara_events.json   (ordered list of events)
- zeilumara_settings.json (single settings record)

Missing files are not errors: events default to an empty list and settings
to their defaults. Decode failures raise DocumentDecodeError; I/O failures
propagate as OSError.
"""

import logging
import os
import tempfile
import threading
from pathlib import Path

from zeilumara import paths, schema
from zeilumara.models import ScheduledEvent, Settings

logger = logging.getLogger(__name__)

EVENTS_FILE_NAME = "zeilumara_events.json"
SETTINGS_FILE_NAME = "zeilumara_settings.json"


class EventStore:
    """File-backed store. Writes are atomic and serialised per instance."""

    def __init__(self, directory: Path | None = None):
        self.directory = Path(directory) if directory is not None else paths.data_dir()
        self.directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    @property
    def events_path(self) -> Path:
        return self.directory / EVENTS_FILE_NAME

    @property
    def settings_path(self) -> Path:
        return self.directory / SETTINGS_FILE_NAME

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def load_events(self) -> list[ScheduledEvent]:
        if not self.events_path.exists():
            return []
        events = schema.load_events(self.events_path.read_text(encoding="utf-8"))
        logger.debug("Loaded %d events from %s", len(events), self.events_path)
        return events

    def save_events(self, events: list[ScheduledEvent]) -> None:
        self._write(self.events_path, schema.dump_events(events))
        logger.info("Saved %d events to %s", len(events), self.events_path)

    def delete_all_events(self) -> None:
        with self._lock:
            if self.events_path.exists():
                self.events_path.unlink()
                logger.info("Deleted %s", self.events_path)

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def load_settings(self) -> Settings:
        if not self.settings_path.exists():
            return Settings()
        return schema.load_settings(self.settings_path.read_text(encoding="utf-8"))

    def save_settings(self, settings: Settings) -> None:
        self._write(self.settings_path, schema.dump_settings(settings))
        logger.info("Saved settings to %s (epoch=%s)", self.settings_path, settings.epoch)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _write(self, path: Path, text: str) -> None:
        with self._lock:
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise


# =============================================================================
# IMPORT / EXPORT
# =============================================================================


def export_events(events: list[ScheduledEvent]) -> str:
    """Shareable events document, same shape as the store's file."""
    return schema.dump_events(events)


def import_events(text: str | bytes) -> list[ScheduledEvent]:
    return schema.load_events(text)


def export_settings(settings: Settings) -> str:
    return schema.dump_settings(settings)


def import_settings(text: str | bytes) -> Settings:
    return schema.load_settings(text)
