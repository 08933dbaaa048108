"""Batch router — batch lifecycle on the ledger.

Endpoints:
    POST   /api/batches/                         Create batch (caller = manufacturer)
    GET    /api/batches/                         List batches (cursor = last id)
    GET    /api/batches/{batch_id}               Single batch
    POST   /api/batches/{batch_id}/status        Move batch to a new stage
    POST   /api/batches/{batch_id}/transfer      Hand the batch to a new owner
    POST   /api/batches/{batch_id}/deactivate    Admin-only retirement
    GET    /api/batches/{batch_id}/history       Full audit trail
    GET    /api/batches/{batch_id}/history/{i}   One history record
    GET    /api/batches/{batch_id}/qr            QR code SVG for batch
"""

import io
import json

import segno
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response

from app.auth.deps import get_current_principal, get_ledger
from app.ledger.principal import Principal, parse_principal
from app.ledger.service import BatchLedger
from app.ledger.stages import Stage
from app.middleware.exceptions import ensure_ok
from app.models.batch import MAX_BATCH_ID
from app.schemas.batch import (
    BatchCreate,
    BatchIdOut,
    BatchOut,
    HistoryRecordOut,
    OkResponse,
    StatusUpdate,
    TransferRequest,
)
from app.schemas.common import CursorPaginatedResponse

router = APIRouter()


# ── Create ───────────────────────────────────────────────────

@router.post("/", response_model=BatchIdOut, status_code=status.HTTP_201_CREATED)
async def create_batch(
    body: BatchCreate,
    ledger: BatchLedger = Depends(get_ledger),
    caller: Principal = Depends(get_current_principal),
):
    batch_id = ensure_ok(
        await ledger.create_batch(caller, body.composition, parse_principal(body.owner))
    )
    return BatchIdOut(batch_id=batch_id)


# ── List batches ─────────────────────────────────────────────

@router.get("/", response_model=CursorPaginatedResponse[BatchOut])
async def list_batches(
    after: int = Query(0, ge=0, le=MAX_BATCH_ID),
    limit: int = Query(50, ge=1, le=200),
    ledger: BatchLedger = Depends(get_ledger),
    _caller: Principal = Depends(get_current_principal),
):
    # Fetch limit+1 to detect has_more
    batches = await ledger.list_batches(after=after, limit=limit + 1)
    has_more = len(batches) > limit
    items = batches[:limit]

    return CursorPaginatedResponse(
        items=[BatchOut.model_validate(b) for b in items],
        total=ledger.get_batch_counter(),
        limit=limit,
        next_cursor=items[-1].id if has_more else None,
        has_more=has_more,
    )


# ── Single batch ─────────────────────────────────────────────

@router.get("/{batch_id}", response_model=BatchOut)
async def get_batch(
    batch_id: int,
    ledger: BatchLedger = Depends(get_ledger),
    _caller: Principal = Depends(get_current_principal),
):
    batch = ensure_ok(await ledger.get_batch(batch_id))
    return BatchOut.model_validate(batch)


# ── Mutations ────────────────────────────────────────────────

@router.post("/{batch_id}/status", response_model=OkResponse)
async def update_batch_status(
    batch_id: int,
    body: StatusUpdate,
    ledger: BatchLedger = Depends(get_ledger),
    caller: Principal = Depends(get_current_principal),
):
    ensure_ok(await ledger.update_batch_status(caller, batch_id, body.stage, body.metadata))
    return OkResponse()


@router.post("/{batch_id}/transfer", response_model=OkResponse)
async def transfer_batch(
    batch_id: int,
    body: TransferRequest,
    ledger: BatchLedger = Depends(get_ledger),
    caller: Principal = Depends(get_current_principal),
):
    ensure_ok(
        await ledger.transfer_batch(caller, batch_id, parse_principal(body.new_owner))
    )
    return OkResponse()


@router.post("/{batch_id}/deactivate", response_model=OkResponse)
async def deactivate_batch(
    batch_id: int,
    ledger: BatchLedger = Depends(get_ledger),
    caller: Principal = Depends(get_current_principal),
):
    ensure_ok(await ledger.deactivate_batch(caller, batch_id))
    return OkResponse()


# ── History ──────────────────────────────────────────────────

@router.get("/{batch_id}/history", response_model=list[HistoryRecordOut])
async def get_batch_trail(
    batch_id: int,
    ledger: BatchLedger = Depends(get_ledger),
    _caller: Principal = Depends(get_current_principal),
):
    records = ensure_ok(await ledger.get_batch_trail(batch_id))
    return [HistoryRecordOut.model_validate(r) for r in records]


@router.get("/{batch_id}/history/{index}", response_model=HistoryRecordOut)
async def get_batch_history(
    batch_id: int,
    index: int,
    ledger: BatchLedger = Depends(get_ledger),
    _caller: Principal = Depends(get_current_principal),
):
    record = ensure_ok(await ledger.get_batch_history(batch_id, index))
    return HistoryRecordOut.model_validate(record)


# ── QR code ──────────────────────────────────────────────────

@router.get("/{batch_id}/qr")
async def get_batch_qr(
    batch_id: int,
    ledger: BatchLedger = Depends(get_ledger),
    _caller: Principal = Depends(get_current_principal),
):
    """Return an SVG QR code encoding the batch's identity and current state."""
    batch = ensure_ok(await ledger.get_batch(batch_id))

    qr_data = json.dumps({
        "batch_id": batch.id,
        "manufacturer": str(batch.manufacturer),
        "origin_timestamp": batch.origin_timestamp,
        "stage": Stage(batch.current_stage).name,
        "owner": str(batch.current_owner),
    }, separators=(",", ":"))

    qr = segno.make(qr_data)
    buf = io.BytesIO()
    qr.save(buf, kind="svg", scale=4, dark="#1d4ed8")
    return Response(content=buf.getvalue(), media_type="image/svg+xml")
