"""
EventService - event book backed by a store and a notification center.

Owns the current conversion engine, built from the persisted settings.
Changing the epoch builds a new engine and reschedules every reminder; an
engine is never mutated in place.

Mutations that register reminders check the notification quota first and
commit only once the reminders are in place.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import replace

from zeilumara import store as store_module
from zeilumara.conversion import ConversionEngine
from zeilumara.models import ScheduledEvent, Settings, StructuredTime
from zeilumara.notifier import (
    NotificationCenter,
    PendingQuotaExceeded,
    ReminderScheduler,
    TriggerRequest,
)
from zeilumara.omens import Omen, evaluate
from zeilumara.store import EventStore
from zeilumara.units import DEFAULT_UNITS, UnitTable

logger = logging.getLogger(__name__)


class EventNotFound(KeyError):
    """Raised when an event id is not in the book."""

    pass


class EventService:
    """
    Args:
        store: Persistence for events and settings
        center: Notification center receiving reminders
        units: Unit table for every engine this service builds
        clock: Source of "now"
    """

    def __init__(
        self,
        store: EventStore,
        center: NotificationCenter,
        units: UnitTable = DEFAULT_UNITS,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.center = center
        self.units = units
        self.clock = clock
        self._settings = store.load_settings()
        self._events = store.load_events()
        self._engine = self._settings.engine(units)
        self._scheduler = ReminderScheduler(self._engine, center, clock=clock)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def engine(self) -> ConversionEngine:
        return self._engine

    @property
    def scheduler(self) -> ReminderScheduler:
        return self._scheduler

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def events(self) -> list[ScheduledEvent]:
        return list(self._events)

    def get_event(self, event_id: str) -> ScheduledEvent:
        return self._events[self._index(event_id)]

    def now(self) -> StructuredTime:
        return self._engine.now(self.clock)

    def omens_now(self) -> list[Omen]:
        return evaluate(self.now())

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def add_event(self, event: ScheduledEvent) -> list[TriggerRequest]:
        """
        Store ``event`` and register its reminders.

        Raises PendingQuotaExceeded, leaving the book and the center unchanged,
        when the reminders would not fit.
        """
        requests = self._plan(event)
        self._scheduler.check_capacity(requests)
        self._scheduler.register(requests)
        self._events.append(event)
        self._save_events()
        return requests

    def update_event(self, event: ScheduledEvent) -> list[TriggerRequest]:
        idx = self._index(event.id)
        previous = self._events[idx]

        requests = self._plan(event)
        self._scheduler.check_capacity(requests, freed=self._scheduler.identifiers(event.id))
        self._scheduler.cancel(event.id)
        try:
            self._scheduler.register(requests)
        except PendingQuotaExceeded:
            self._scheduler.register(self._plan(previous))
            raise

        self._events[idx] = event
        self._save_events()
        return requests

    def delete_event(self, event_id: str) -> None:
        del self._events[self._index(event_id)]
        self._save_events()
        self._scheduler.cancel(event_id)

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def update_settings(self, settings: Settings) -> None:
        """
        Replace the settings.

        A new epoch builds a new engine; a new epoch or notification toggle
        reschedules every reminder. The reminders are replaced before the
        settings are committed, so PendingQuotaExceeded leaves both as they were.
        """
        epoch_changed = settings.epoch != self._settings.epoch
        notifications_changed = settings.notifications_enabled != self._settings.notifications_enabled

        engine, scheduler = self._engine, self._scheduler
        if epoch_changed:
            engine = settings.engine(self.units)
            scheduler = ReminderScheduler(engine, self.center, clock=self.clock)
        if epoch_changed or notifications_changed:
            self._replace_all(scheduler, settings)

        self.store.save_settings(settings)
        self._settings = settings
        if epoch_changed:
            self._engine, self._scheduler = engine, scheduler
            logger.info("Epoch changed to %s, engine rebuilt", settings.epoch)

    def update_epoch(self, epoch: float) -> None:
        self.update_settings(replace(self._settings, epoch=epoch))

    def reschedule_all(self) -> list[TriggerRequest]:
        return self._replace_all(self._scheduler, self._settings)

    # -------------------------------------------------------------------------
    # Import / export
    # -------------------------------------------------------------------------

    def export_events(self) -> str:
        return store_module.export_events(self._events)

    def import_events(self, text: str | bytes) -> list[ScheduledEvent]:
        """
        Append events from an exported document and schedule them.

        Events whose id is already in the book (or earlier in the document)
        are skipped. All or nothing: if the new reminders would not fit,
        PendingQuotaExceeded is raised and nothing is imported.
        """
        known = {e.id for e in self._events}
        imported = []
        for event in store_module.import_events(text):
            if event.id in known:
                logger.info("Skipping imported event %s: id already present", event.id)
                continue
            known.add(event.id)
            imported.append(event)

        now = self.clock()
        requests = [r for event in imported for r in self._plan(event, now)]
        self._scheduler.check_capacity(requests)
        self._scheduler.register(requests)

        self._events.extend(imported)
        self._save_events()
        logger.info("Imported %d events", len(imported))
        return imported

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _index(self, event_id: str) -> int:
        for idx, event in enumerate(self._events):
            if event.id == event_id:
                return idx
        raise EventNotFound(event_id)

    def _plan(self, event: ScheduledEvent, now: float | None = None) -> list[TriggerRequest]:
        if not self._settings.notifications_enabled:
            return []
        return self._scheduler.plan(event, now)

    def _replace_all(self, scheduler: ReminderScheduler, settings: Settings) -> list[TriggerRequest]:
        if not settings.notifications_enabled:
            self.center.cancel_all()
            return []
        return scheduler.reschedule_all(self._events)

    def _save_events(self) -> None:
        self.store.save_events(self._events)
