"""
Zeilumara API Router - conversion, recurrence, events and settings.

Provides endpoints for:
- Reading the current moment and converting in both directions
- Expanding repeat rules into occurrences
- Managing events (reminders are scheduled as a side effect)
- Exporting/importing the events document
- Reading and updating settings
"""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse

from api.response_models import (
    EventCreate,
    EventResponse,
    HealthResponse,
    LinearResponse,
    ListResponse,
    MutationResponse,
    OccurrenceModel,
    OccurrencesRequest,
    OmenModel,
    StructuredTimeResponse,
)
from zeilumara.models import ScheduledEvent
from zeilumara.notifier import PendingQuotaExceeded
from zeilumara.omens import evaluate
from zeilumara.recurrence import RecurrenceExpander
from zeilumara.schema import DocumentDecodeError, EventDoc, SettingsDoc, StructuredTimeDoc
from zeilumara.service import EventNotFound, EventService

logger = logging.getLogger(__name__)

time_router = APIRouter(
    prefix="/api",
    tags=["Zeilumara"],
)


def get_service(request: Request) -> EventService:
    """The service attached to the running app (see api.server.create_app)."""
    return request.app.state.service


def _reading(service: EventService, t: float) -> StructuredTimeResponse:
    moment = service.engine.to_structured(t)
    return StructuredTimeResponse(
        linear=t,
        epoch=service.engine.epoch,
        structured=StructuredTimeDoc.from_domain(moment),
        formatted=service.settings.format(moment),
        compact=moment.compact(),
        omens=[OmenModel(kind=o.kind.value, message=o.message) for o in evaluate(moment)],
    )


# ==== Health ====


@time_router.get("/health", response_model=HealthResponse)
def health(service: EventService = Depends(get_service)) -> HealthResponse:
    return HealthResponse(status="healthy", epoch=service.engine.epoch, timestamp=time.time())


# ==== Conversion ====


@time_router.get("/time/now", response_model=StructuredTimeResponse)
def time_now(service: EventService = Depends(get_service)) -> StructuredTimeResponse:
    """Current moment in Zeilumara time, with any omens."""
    return _reading(service, service.clock())


@time_router.get("/time/structured", response_model=StructuredTimeResponse)
def time_structured(
    t: float = Query(..., description="Unix seconds", allow_inf_nan=False),
    service: EventService = Depends(get_service),
) -> StructuredTimeResponse:
    return _reading(service, t)


@time_router.post("/time/linear", response_model=LinearResponse)
def time_linear(
    structured: StructuredTimeDoc,
    service: EventService = Depends(get_service),
) -> LinearResponse:
    return LinearResponse(
        linear=service.engine.to_linear(structured.to_domain()),
        epoch=service.engine.epoch,
    )


@time_router.post("/time/occurrences", response_model=ListResponse)
def time_occurrences(
    body: OccurrencesRequest,
    service: EventService = Depends(get_service),
) -> ListResponse:
    """Expand a repeat rule from an anchor (linear frequencies yield nothing)."""
    if body.max_occurrences is not None:
        expander = RecurrenceExpander(
            service.engine, max_occurrences=body.max_occurrences, clock=service.clock
        )
    else:
        expander = RecurrenceExpander(service.engine, clock=service.clock)

    items = [
        OccurrenceModel(
            index=occ.index,
            structured=StructuredTimeDoc.from_domain(occ.moment),
            trigger_at=occ.trigger_at,
        )
        for occ in expander.expand(body.anchor.to_domain(), body.rule.to_domain(), now=body.now)
    ]
    return ListResponse(items=items, total=len(items))


# ==== Events ====


@time_router.get("/events", response_model=ListResponse)
def list_events(service: EventService = Depends(get_service)) -> ListResponse:
    items = [EventDoc.from_domain(e) for e in service.events]
    return ListResponse(items=items, total=len(items))


@time_router.post("/events", response_model=EventResponse, status_code=201)
def create_event(body: EventCreate, service: EventService = Depends(get_service)) -> EventResponse:
    event = ScheduledEvent(
        title=body.title,
        notes=body.notes,
        anchor=body.anchor.to_domain(),
        repeats=body.repeats.to_domain() if body.repeats else None,
        notification_enabled=body.notification_enabled,
        created_at=service.clock(),
    )
    try:
        scheduled = service.add_event(event)
    except PendingQuotaExceeded as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    return EventResponse(
        event=EventDoc.from_domain(event),
        trigger_at=event.trigger_at(service.engine),
        scheduled=len(scheduled),
    )


@time_router.delete("/events/{event_id}", response_model=MutationResponse)
def delete_event(event_id: str, service: EventService = Depends(get_service)) -> dict:
    try:
        service.delete_event(event_id)
    except EventNotFound as e:
        raise HTTPException(status_code=404, detail=f"Event not found: {event_id}") from e
    return {"success": True, "id": event_id}


@time_router.get("/events/export", response_class=PlainTextResponse)
def export_events(service: EventService = Depends(get_service)) -> PlainTextResponse:
    return PlainTextResponse(service.export_events(), media_type="application/json")


@time_router.post("/events/import", response_model=MutationResponse)
async def import_events(request: Request, service: EventService = Depends(get_service)) -> dict:
    """Append events from an exported document (raw JSON body)."""
    body = await request.body()
    try:
        imported = service.import_events(body)
    except DocumentDecodeError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except PendingQuotaExceeded as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return {"success": True, "imported": len(imported)}


# ==== Settings ====


@time_router.get("/settings", response_model=SettingsDoc)
def get_settings(service: EventService = Depends(get_service)) -> SettingsDoc:
    return SettingsDoc.from_domain(service.settings)


@time_router.put("/settings", response_model=SettingsDoc)
def put_settings(body: SettingsDoc, service: EventService = Depends(get_service)) -> SettingsDoc:
    """Replace settings; a new epoch rebuilds the engine and reschedules reminders."""
    try:
        service.update_settings(body.to_domain())
    except PendingQuotaExceeded as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    return SettingsDoc.from_domain(service.settings)
