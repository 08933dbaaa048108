"""Pydantic schemas for batch lifecycle operations."""

from pydantic import BaseModel, Field, field_validator

from app.config import settings
from app.ledger.principal import PRINCIPAL_MAX_LENGTH


def _principal_str(value):
    # Principal columns come back as Principal objects from the ORM
    return None if value is None else str(value)


# ── Create ───────────────────────────────────────────────────

class BatchCreate(BaseModel):
    """Payload for POST /api/batches.  The caller becomes the manufacturer."""
    composition: str = Field(..., max_length=settings.composition_max_length)
    owner: str | None = Field(None, max_length=PRINCIPAL_MAX_LENGTH)


class BatchIdOut(BaseModel):
    batch_id: int


# ── Stage update / transfer ──────────────────────────────────

class StatusUpdate(BaseModel):
    # Plain int: out-of-range stages reach the ledger and come back as INVALID_STAGE
    stage: int
    metadata: str = Field("", max_length=settings.metadata_max_length)


class TransferRequest(BaseModel):
    new_owner: str | None = Field(None, max_length=PRINCIPAL_MAX_LENGTH)


class OkResponse(BaseModel):
    ok: bool = True


# ── Response ─────────────────────────────────────────────────

class BatchOut(BaseModel):
    id: int
    manufacturer: str
    composition: str
    origin_timestamp: int
    current_owner: str
    current_stage: int
    last_update: int
    is_active: bool

    model_config = {"from_attributes": True}

    @field_validator("manufacturer", "current_owner", mode="before")
    @classmethod
    def principals_str(cls, v):
        return _principal_str(v)


class HistoryRecordOut(BaseModel):
    index: int = Field(validation_alias="sequence")
    stage: int
    owner: str
    timestamp: int = Field(validation_alias="recorded_at")
    metadata: str = Field(validation_alias="event_metadata")

    model_config = {"from_attributes": True, "populate_by_name": True}

    @field_validator("owner", mode="before")
    @classmethod
    def owner_str(cls, v):
        return _principal_str(v)
