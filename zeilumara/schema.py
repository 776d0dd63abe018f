"""
Document schema for events and settings.

The persistence store, the import/export surface and the HTTP API all use
these shapes, so a document written by one instance can be read by another.

Structured fields are strict integers so a round trip never coerces or
rounds them; linear times are plain JSON floats, which Python writes and
reads back exactly.
"""

import json

from pydantic import BaseModel, ConfigDict, Field, StrictInt, TypeAdapter, ValidationError

from zeilumara import config
from zeilumara.models import (
    AppTheme,
    DisplayLanguage,
    RepeatFrequency,
    RepeatRule,
    ScheduledEvent,
    Settings,
    StructuredTime,
)


class DocumentDecodeError(ValueError):
    """Raised when an events or settings document cannot be decoded."""

    pass


# ==== Models ====


class StructuredTimeDoc(BaseModel):
    """Eight structured fields, coarsest first."""

    model_config = ConfigDict(extra="forbid")

    era: StrictInt = 0
    archive: StrictInt = 0
    dreamday: StrictInt = 0
    loop: StrictInt = 0
    weave: StrictInt = 0
    beat: StrictInt = 0
    yaon: StrictInt = 0
    visible_beat: StrictInt = 0

    @classmethod
    def from_domain(cls, moment: StructuredTime) -> "StructuredTimeDoc":
        return cls(
            era=moment.era,
            archive=moment.archive,
            dreamday=moment.dreamday,
            loop=moment.loop,
            weave=moment.weave,
            beat=moment.beat,
            yaon=moment.yaon,
            visible_beat=moment.visible_beat,
        )

    def to_domain(self) -> StructuredTime:
        return StructuredTime(**self.model_dump())


class RepeatRuleDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    frequency: RepeatFrequency
    interval: StrictInt = Field(default=1, ge=1)
    end: float | None = Field(default=None, description="Linear end bound (Unix seconds)")

    @classmethod
    def from_domain(cls, rule: RepeatRule) -> "RepeatRuleDoc":
        return cls(frequency=rule.frequency, interval=rule.interval, end=rule.end)

    def to_domain(self) -> RepeatRule:
        return RepeatRule(frequency=self.frequency, interval=self.interval, end=self.end)


class EventDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1)
    title: str
    notes: str | None = None
    anchor: StructuredTimeDoc
    repeats: RepeatRuleDoc | None = None
    notification_enabled: bool = True
    created_at: float
    calendar_event_id: str | None = None

    @classmethod
    def from_domain(cls, event: ScheduledEvent) -> "EventDoc":
        return cls(
            id=event.id,
            title=event.title,
            notes=event.notes,
            anchor=StructuredTimeDoc.from_domain(event.anchor),
            repeats=RepeatRuleDoc.from_domain(event.repeats) if event.repeats else None,
            notification_enabled=event.notification_enabled,
            created_at=event.created_at,
            calendar_event_id=event.calendar_event_id,
        )

    def to_domain(self) -> ScheduledEvent:
        return ScheduledEvent(
            id=self.id,
            title=self.title,
            notes=self.notes,
            anchor=self.anchor.to_domain(),
            repeats=self.repeats.to_domain() if self.repeats else None,
            notification_enabled=self.notification_enabled,
            created_at=self.created_at,
            calendar_event_id=self.calendar_event_id,
        )


class SettingsDoc(BaseModel):
    model_config = ConfigDict(extra="forbid")

    epoch: float = Field(default=config.DEFAULT_EPOCH, allow_inf_nan=False)
    display_language: DisplayLanguage = DisplayLanguage.ROMANIZED
    use_24_hour_format: bool = True
    notifications_enabled: bool = True
    calendar_integration_enabled: bool = False
    theme: AppTheme = AppTheme.AUTO

    @classmethod
    def from_domain(cls, settings: Settings) -> "SettingsDoc":
        return cls(
            epoch=settings.epoch,
            display_language=settings.display_language,
            use_24_hour_format=settings.use_24_hour_format,
            notifications_enabled=settings.notifications_enabled,
            calendar_integration_enabled=settings.calendar_integration_enabled,
            theme=settings.theme,
        )

    def to_domain(self) -> Settings:
        return Settings(
            epoch=self.epoch,
            display_language=self.display_language,
            use_24_hour_format=self.use_24_hour_format,
            notifications_enabled=self.notifications_enabled,
            calendar_integration_enabled=self.calendar_integration_enabled,
            theme=self.theme,
        )


_EVENT_LIST = TypeAdapter(list[EventDoc])


# ==== Encoding ====


def _dumps(payload) -> str:
    return json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False)


def dump_events(events: list[ScheduledEvent]) -> str:
    docs = [EventDoc.from_domain(e) for e in events]
    return _dumps(_EVENT_LIST.dump_python(docs, mode="json"))


def load_events(text: str | bytes) -> list[ScheduledEvent]:
    try:
        docs = _EVENT_LIST.validate_json(text)
    except ValidationError as exc:
        raise DocumentDecodeError(f"Invalid events document: {exc}") from exc
    return [doc.to_domain() for doc in docs]


def dump_settings(settings: Settings) -> str:
    return _dumps(SettingsDoc.from_domain(settings).model_dump(mode="json"))


def load_settings(text: str | bytes) -> Settings:
    try:
        doc = SettingsDoc.model_validate_json(text)
    except ValidationError as exc:
        raise DocumentDecodeError(f"Invalid settings document: {exc}") from exc
    return doc.to_domain()
