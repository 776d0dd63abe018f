"""
Tests for EventService - event book, settings and rescheduling.
"""

from dataclasses import replace

import pytest

from tests.fixtures import COARSE_UNITS, FixedClock, make_event
from zeilumara import store as store_module
from zeilumara.models import RepeatFrequency, RepeatRule, Settings, StructuredTime
from zeilumara.notifier import PendingQuotaExceeded
from zeilumara.omens import WHISPER
from zeilumara.service import EventNotFound, EventService
from zeilumara.store import EventStore


@pytest.fixture
def service(store, center):
    store.save_settings(Settings(epoch=0.0))
    return EventService(store, center, units=COARSE_UNITS, clock=FixedClock(0.0))


def at_beat(beat: int, **kwargs):
    return make_event(anchor=StructuredTime(beat=beat), **kwargs)


class TestEvents:
    def test_add_persists_and_schedules(self, service, store, center):
        event = at_beat(30)
        added = service.add_event(event)
        assert len(added) == 1
        assert store.load_events() == [event]
        assert center.pending()[0].fire_at == pytest.approx(30.0)

    def test_events_survive_restart(self, service, store, center):
        event = at_beat(30)
        service.add_event(event)
        reopened = EventService(store, center, units=COARSE_UNITS, clock=FixedClock(0.0))
        assert reopened.get_event(event.id) == event
        assert reopened.engine.epoch == 0.0

    def test_events_is_a_copy(self, service):
        service.add_event(at_beat(30))
        service.events.clear()
        assert len(service.events) == 1

    def test_update_replaces_and_reschedules(self, service, center):
        event = at_beat(30, repeats=RepeatRule(RepeatFrequency.EVERY_BEAT, end=35.0))
        service.add_event(event)
        assert len(center.pending()) == 6

        service.update_event(event.with_changes(anchor=StructuredTime(beat=50), repeats=None))

        assert service.get_event(event.id).anchor.beat == 50
        assert [r.fire_at for r in center.pending()] == [pytest.approx(50.0)]

    def test_update_unknown(self, service):
        with pytest.raises(EventNotFound):
            service.update_event(at_beat(1))

    def test_delete_cancels(self, service, store, center):
        event = at_beat(30, repeats=RepeatRule(RepeatFrequency.EVERY_WEAVE))
        service.add_event(event)
        service.delete_event(event.id)
        assert service.events == []
        assert store.load_events() == []
        assert center.pending() == []

    def test_delete_unknown(self, service):
        with pytest.raises(EventNotFound):
            service.delete_event("missing")

    def test_past_event_stored_but_not_scheduled(self, service, center):
        service.clock.now = 100.0
        assert service.add_event(at_beat(30)) == []
        assert len(service.events) == 1
        assert center.pending() == []


class TestSettings:
    def test_epoch_change_rebuilds_engine(self, service, center):
        event = at_beat(30)
        service.add_event(event)
        old_engine = service.engine

        service.update_epoch(10.0)

        assert service.engine is not old_engine
        assert old_engine.epoch == 0.0
        assert service.engine.epoch == 10.0
        assert service.scheduler.engine is service.engine
        assert [r.fire_at for r in center.pending()] == [pytest.approx(40.0)]

    def test_epoch_persisted(self, service, store):
        service.update_epoch(123.5)
        assert store.load_settings().epoch == 123.5

    def test_disabling_notifications_cancels_all(self, service, center):
        service.add_event(at_beat(30))
        service.update_settings(replace(service.settings, notifications_enabled=False))
        assert center.pending() == []
        assert service.add_event(at_beat(40)) == []
        assert center.pending() == []

    def test_reenabling_notifications_reschedules(self, service, center):
        service.update_settings(replace(service.settings, notifications_enabled=False))
        service.add_event(at_beat(30))
        service.update_settings(replace(service.settings, notifications_enabled=True))
        assert len(center.pending()) == 1

    def test_display_change_keeps_reminders(self, service, center):
        service.add_event(at_beat(30))
        engine = service.engine
        service.update_settings(replace(service.settings, use_24_hour_format=False))
        assert service.engine is engine
        assert len(center.pending()) == 1


class TestClock:
    def test_now_at_epoch(self, service):
        assert service.now() == StructuredTime()

    def test_omens_now(self, service):
        # visible beat 0 is a multiple of 77
        assert service.omens_now() == [WHISPER]

    def test_now_follows_clock(self, service):
        service.clock.advance(64.0)
        assert service.now().weave == 1


class TestImportExport:
    def test_import_appends_and_schedules(self, service, center):
        incoming = [at_beat(30, title="a"), at_beat(31, title="b")]
        service.add_event(at_beat(20, title="existing"))

        imported = service.import_events(store_module.export_events(incoming))

        assert imported == incoming
        assert [e.title for e in service.events] == ["existing", "a", "b"]
        assert len(center.pending()) == 3

    def test_export_round_trip(self, service, store, center):
        service.add_event(at_beat(30))
        document = service.export_events()
        fresh = EventService(
            EventStore(store.directory / "other"), center, units=COARSE_UNITS, clock=FixedClock(0.0)
        )
        assert fresh.import_events(document) == service.events


class TestQuota:
    """Reminders that would not fit leave the book, settings and center untouched."""

    def every_beat(self, **kwargs):
        return at_beat(30, repeats=RepeatRule(RepeatFrequency.EVERY_BEAT), **kwargs)

    def test_add_refused(self, service, store, center):
        first = self.every_beat(title="first")
        service.add_event(first)

        with pytest.raises(PendingQuotaExceeded):
            service.add_event(self.every_beat(title="second"))

        assert service.events == [first]
        assert store.load_events() == [first]
        assert len(center.pending()) == 51

    def test_update_refused_keeps_previous(self, service, store, center):
        service.add_event(self.every_beat(title="big"))
        small = at_beat(40, title="small")
        service.add_event(small)

        with pytest.raises(PendingQuotaExceeded):
            service.update_event(small.with_changes(repeats=RepeatRule(RepeatFrequency.EVERY_BEAT)))

        assert service.get_event(small.id) == small
        assert store.load_events()[1] == small
        assert len(center.pending()) == 52

    def test_update_replacing_own_series_fits(self, service, center):
        event = self.every_beat()
        service.add_event(event)
        service.update_event(event.with_changes(anchor=StructuredTime(beat=31)))
        assert len(center.pending()) == 51

    def test_settings_refused(self, service, store, center):
        service.update_settings(replace(service.settings, notifications_enabled=False))
        service.add_event(self.every_beat(title="a"))
        service.add_event(self.every_beat(title="b"))

        with pytest.raises(PendingQuotaExceeded):
            service.update_settings(Settings(epoch=1.0, notifications_enabled=True))

        assert service.settings.notifications_enabled is False
        assert service.engine.epoch == 0.0
        assert store.load_settings() == service.settings
        assert center.pending() == []

    def test_epoch_change_after_refused_add_succeeds(self, service, center):
        service.add_event(self.every_beat())
        with pytest.raises(PendingQuotaExceeded):
            service.add_event(self.every_beat())

        service.update_epoch(1.0)

        assert service.engine.epoch == 1.0
        assert len(center.pending()) == 51

    def test_import_is_all_or_nothing(self, service, store, center):
        document = store_module.export_events([self.every_beat(title="a"), self.every_beat(title="b")])
        with pytest.raises(PendingQuotaExceeded):
            service.import_events(document)
        assert service.events == []
        assert store.load_events() == []
        assert center.pending() == []


class TestImportDuplicates:
    def test_reimport_skips_known_ids(self, service, center):
        event = at_beat(30)
        service.add_event(event)

        assert service.import_events(service.export_events()) == []
        assert service.events == [event]
        assert len(center.pending()) == 1

    def test_duplicates_within_document(self, service):
        event = at_beat(30)
        imported = service.import_events(store_module.export_events([event, event]))
        assert imported == [event]
        assert service.events == [event]
