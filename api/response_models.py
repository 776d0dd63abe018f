"""
Shared Pydantic request/response models for API endpoints.

Structured times, repeat rules and events reuse the document models from
zeilumara.schema so the API speaks the same shape as import/export.

Usage:
    from api.response_models import StructuredTimeResponse, ListResponse

    @router.get("/endpoint", response_model=StructuredTimeResponse)
    def my_endpoint(): ...
"""

from typing import Any

from pydantic import BaseModel, Field

from zeilumara.schema import EventDoc, RepeatRuleDoc, StructuredTimeDoc

# ==== Time Conversion ====


class OmenModel(BaseModel):
    kind: str = Field(description="awakening or whisper")
    message: str


class StructuredTimeResponse(BaseModel):
    """A linear instant and its Zeilumara reading."""

    linear: float = Field(description="Unix seconds")
    epoch: float = Field(description="Epoch of the engine that produced this reading")
    structured: StructuredTimeDoc
    formatted: str = Field(description="Rendered in the configured display language")
    compact: str
    omens: list[OmenModel] = Field(default_factory=list)


class LinearResponse(BaseModel):
    linear: float = Field(description="Unix seconds")
    epoch: float


# ==== Recurrence ====


class OccurrencesRequest(BaseModel):
    anchor: StructuredTimeDoc
    rule: RepeatRuleDoc
    now: float | None = Field(default=None, description="Override 'now' for horizon bounding")
    max_occurrences: int | None = Field(default=None, ge=1)


class OccurrenceModel(BaseModel):
    index: int
    structured: StructuredTimeDoc
    trigger_at: float


# ==== Events ====


class EventCreate(BaseModel):
    """New event; id and created_at are assigned by the server."""

    title: str = Field(min_length=1)
    notes: str | None = None
    anchor: StructuredTimeDoc
    repeats: RepeatRuleDoc | None = None
    notification_enabled: bool = True


class EventResponse(BaseModel):
    event: EventDoc
    trigger_at: float
    scheduled: int = Field(description="Trigger requests registered for this event")


# ==== List Envelope ====


class ListResponse(BaseModel):
    """Standard list endpoint response."""

    items: list[Any] = Field(default_factory=list, description="Result items")
    total: int = Field(description="Total count")


# ==== Mutation Result ====


class MutationResponse(BaseModel):
    """Standard mutation result."""

    success: bool = Field(description="Whether the operation succeeded")

    model_config = {"extra": "allow"}


# ==== Health Check ====


class HealthResponse(BaseModel):
    """Health check result."""

    status: str = Field(description="healthy or error")
    epoch: float
    timestamp: float = Field(description="Unix seconds")
