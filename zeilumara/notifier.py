"""
Reminder scheduling - turns events into notification trigger requests.

The notification center is the delivery side: it accepts absolute-time
trigger requests, cancels them by identifier and enforces a cap on pending
triggers. Two centers ship here:
- InMemoryNotificationCenter: in-process, used by the API, CLI and tests
- WebhookNotificationCenter: forwards requests to a remote scheduler over HTTP

ReminderScheduler sits between the events and a center:
- one primary trigger per event, identifier = event id
- linear repeats (daily/weekly/monthly) ride on the center's native repeat
- Zeilumara repeats are expanded into "<id>_repeat_<n>" one-shot triggers
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

import httpx

from zeilumara import config
from zeilumara.conversion import ConversionEngine
from zeilumara.models import RepeatFrequency, ScheduledEvent
from zeilumara.recurrence import RecurrenceExpander

logger = logging.getLogger(__name__)

REPEAT_MARKER = "_repeat_"


class PendingQuotaExceeded(Exception):
    """Raised when a center already holds its maximum of pending triggers."""

    pass


@dataclass(frozen=True)
class TriggerRequest:
    """A single absolute-time notification request."""

    identifier: str
    fire_at: float
    title: str
    body: str
    repeats: RepeatFrequency | None = None  # native repeat, linear frequencies only
    category: str = config.NOTIFICATION_CATEGORY
    user_info: dict = field(default_factory=dict)

    def to_payload(self) -> dict:
        return {
            "identifier": self.identifier,
            "fire_at": self.fire_at,
            "title": self.title,
            "body": self.body,
            "repeats": self.repeats.value if self.repeats else None,
            "category": self.category,
            "user_info": self.user_info,
        }

    @classmethod
    def from_payload(cls, payload: dict) -> "TriggerRequest":
        repeats = payload.get("repeats")
        return cls(
            identifier=payload["identifier"],
            fire_at=float(payload["fire_at"]),
            title=payload["title"],
            body=payload["body"],
            repeats=RepeatFrequency(repeats) if repeats else None,
            category=payload.get("category", config.NOTIFICATION_CATEGORY),
            user_info=payload.get("user_info") or {},
        )


def repeat_identifier(event_id: str, occurrence: int) -> str:
    return f"{event_id}{REPEAT_MARKER}{occurrence}"


# =============================================================================
# NOTIFICATION CENTERS
# =============================================================================


class NotificationCenter(ABC):
    """
    Delivery side of reminders.

    ``pending_cap`` is the most requests the center holds at once, or None
    when only the center itself knows (it then refuses with
    PendingQuotaExceeded on add).
    """

    pending_cap: int | None = None

    @abstractmethod
    def add(self, request: TriggerRequest) -> None:
        """Register ``request``; an existing identifier is replaced."""

    @abstractmethod
    def cancel(self, identifiers: list[str]) -> None:
        """Drop pending requests by identifier. Unknown identifiers are ignored."""

    @abstractmethod
    def cancel_all(self) -> None:
        pass

    @abstractmethod
    def pending(self) -> list[TriggerRequest]:
        pass


class InMemoryNotificationCenter(NotificationCenter):
    """Pending requests held in process, capped at ``pending_cap``."""

    def __init__(self, pending_cap: int = config.PENDING_TRIGGER_CAP):
        if pending_cap < 1:
            raise ValueError(f"pending_cap must be >= 1, got {pending_cap}")
        self.pending_cap = pending_cap
        self._pending: dict[str, TriggerRequest] = {}
        self._lock = threading.Lock()

    def add(self, request: TriggerRequest) -> None:
        with self._lock:
            if request.identifier not in self._pending and len(self._pending) >= self.pending_cap:
                raise PendingQuotaExceeded(
                    f"{len(self._pending)} triggers pending, cap is {self.pending_cap}"
                )
            self._pending[request.identifier] = request

    def cancel(self, identifiers: list[str]) -> None:
        with self._lock:
            for identifier in identifiers:
                self._pending.pop(identifier, None)

    def cancel_all(self) -> None:
        with self._lock:
            self._pending.clear()

    def pending(self) -> list[TriggerRequest]:
        with self._lock:
            return sorted(self._pending.values(), key=lambda r: (r.fire_at, r.identifier))


class WebhookNotificationCenter(NotificationCenter):
    """
    Forwards trigger requests to a remote scheduler.

    Endpoints relative to ``base_url``:
        POST   /triggers          register one request
        POST   /triggers/cancel   {"identifiers": [...]}
        DELETE /triggers          cancel everything
        GET    /triggers          list pending requests

    A 409 from the remote side means its pending quota is full.
    """

    def __init__(self, base_url: str, client: httpx.Client | None = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    def add(self, request: TriggerRequest) -> None:
        response = self._client.post(f"{self.base_url}/triggers", json=request.to_payload())
        if response.status_code == httpx.codes.CONFLICT:
            raise PendingQuotaExceeded(f"Remote scheduler refused {request.identifier}: quota full")
        self._check(response)

    def cancel(self, identifiers: list[str]) -> None:
        if not identifiers:
            return
        response = self._client.post(
            f"{self.base_url}/triggers/cancel", json={"identifiers": list(identifiers)}
        )
        self._check(response)

    def cancel_all(self) -> None:
        self._check(self._client.delete(f"{self.base_url}/triggers"))

    def pending(self) -> list[TriggerRequest]:
        response = self._client.get(f"{self.base_url}/triggers")
        self._check(response)
        return [TriggerRequest.from_payload(item) for item in response.json()]

    def close(self) -> None:
        self._client.close()

    @staticmethod
    def _check(response: httpx.Response) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("Remote scheduler HTTP error: %s", e)
            raise


# =============================================================================
# REMINDER SCHEDULER
# =============================================================================


class ReminderScheduler:
    """
    Schedules reminders for events on a notification center.

    Requests are planned first and checked against the center's cap before
    anything is registered, so a refused event leaves the center as it was.

    Args:
        engine: Conversion engine for the current epoch
        center: Where trigger requests are registered
        expander: Recurrence expander; built from ``engine`` when omitted
        clock: Source of "now"
    """

    def __init__(
        self,
        engine: ConversionEngine,
        center: NotificationCenter,
        expander: RecurrenceExpander | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.engine = engine
        self.center = center
        self.clock = clock
        self.expander = expander or RecurrenceExpander(engine, clock=clock)

    # -------------------------------------------------------------------------
    # Planning
    # -------------------------------------------------------------------------

    def plan(self, event: ScheduledEvent, now: float | None = None) -> list[TriggerRequest]:
        """
        Trigger requests ``event`` needs, without touching the center.

        Disabled and past events need none.
        """
        if not event.notification_enabled:
            return []

        if now is None:
            now = self.clock()
        if event.is_past(self.engine, now):
            logger.warning("Skipping notification for past event: %s", event.title)
            return []

        rule = event.repeats
        body = event.notes or config.DEFAULT_NOTIFICATION_BODY
        native = rule.frequency if rule and rule.frequency.is_linear else None

        requests = [
            TriggerRequest(
                identifier=event.id,
                fire_at=event.trigger_at(self.engine),
                title=event.title,
                body=body,
                repeats=native,
                user_info={"event_id": event.id, "z_time": event.anchor.compact()},
            )
        ]
        if rule and rule.frequency.is_zeilumara_unit:
            for occ in self.expander.expand(event.anchor, rule, now=now):
                requests.append(
                    TriggerRequest(
                        identifier=repeat_identifier(event.id, occ.index),
                        fire_at=occ.trigger_at,
                        title=event.title,
                        body=body,
                        user_info={
                            "event_id": event.id,
                            "z_time": occ.moment.compact(),
                            "occurrence": occ.index,
                        },
                    )
                )
        return requests

    def identifiers(self, event_id: str) -> list[str]:
        """Pending identifiers belonging to ``event_id``, primary first."""
        prefix = f"{event_id}{REPEAT_MARKER}"
        pending = [r.identifier for r in self.center.pending()]
        repeats = [i for i in pending if i.startswith(prefix)]
        return ([event_id] if event_id in pending else []) + repeats

    def check_capacity(self, requests: list[TriggerRequest], freed: Iterable[str] = ()) -> None:
        """
        Raise PendingQuotaExceeded if ``requests`` would not fit.

        ``freed`` names pending identifiers that will be cancelled first.
        Requests replacing a pending identifier take no extra room.
        """
        cap = self.center.pending_cap
        if cap is None or not requests:
            return
        remaining = {r.identifier for r in self.center.pending()} - set(freed)
        needed = {r.identifier for r in requests} - remaining
        if len(remaining) + len(needed) > cap:
            raise PendingQuotaExceeded(
                f"{len(needed)} triggers requested, {len(remaining)} pending, cap is {cap}"
            )

    def register(self, requests: list[TriggerRequest]) -> None:
        """
        Add ``requests`` to the center.

        If the center refuses one, the requests already added by this call
        are withdrawn before the error propagates.
        """
        added = []
        try:
            for request in requests:
                self.center.add(request)
                added.append(request.identifier)
                logger.debug("Registered trigger %s at %s", request.identifier, request.fire_at)
        except PendingQuotaExceeded:
            logger.warning("Center refused trigger, withdrawing %d added", len(added))
            self.center.cancel(added)
            raise

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    def schedule(self, event: ScheduledEvent) -> list[TriggerRequest]:
        """Register reminders for ``event``. Returns the requests added."""
        requests = self.plan(event)
        self.check_capacity(requests)
        self.register(requests)
        if requests:
            logger.info(
                "Scheduled notification for '%s' at %s (%d repeats)",
                event.title,
                requests[0].fire_at,
                len(requests) - 1,
            )
        return requests

    def cancel(self, event_id: str) -> None:
        """Cancel the primary trigger and every repeat of ``event_id``."""
        identifiers = self.identifiers(event_id)
        self.center.cancel(identifiers or [event_id])
        logger.info("Cancelled notifications for %s (%d triggers)", event_id, len(identifiers))

    def reschedule(self, event: ScheduledEvent) -> list[TriggerRequest]:
        requests = self.plan(event)
        self.check_capacity(requests, freed=self.identifiers(event.id))
        self.cancel(event.id)
        self.register(requests)
        return requests

    def reschedule_all(self, events: list[ScheduledEvent]) -> list[TriggerRequest]:
        """Replace every pending trigger with those ``events`` need."""
        now = self.clock()
        requests = [r for event in events for r in self.plan(event, now)]
        self.check_capacity(requests, freed=[r.identifier for r in self.center.pending()])
        self.center.cancel_all()
        self.register(requests)
        return requests
