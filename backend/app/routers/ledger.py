"""Ledger router — configuration state and the admin surface.

Endpoints:
    GET    /api/ledger           Counter, admin, oracle, pause flag
    POST   /api/ledger/admin     Hand over the admin role
    POST   /api/ledger/oracle    Replace the oracle
    POST   /api/ledger/pause     Pause / resume mutations
"""

from fastapi import APIRouter, Depends

from app.auth.deps import get_current_principal, get_ledger
from app.ledger.principal import Principal, parse_principal
from app.ledger.service import BatchLedger
from app.middleware.exceptions import ensure_ok
from app.schemas.batch import OkResponse
from app.schemas.ledger import (
    AdminRequest,
    LedgerStatusOut,
    OracleRequest,
    PausedOut,
    PauseRequest,
)

router = APIRouter()


@router.get("", response_model=LedgerStatusOut)
async def get_ledger_status(
    ledger: BatchLedger = Depends(get_ledger),
    _caller: Principal = Depends(get_current_principal),
):
    oracle = ledger.get_oracle()
    return LedgerStatusOut(
        admin=str(ledger.get_admin()),
        oracle=str(oracle) if oracle else None,
        paused=ledger.is_paused(),
        batch_counter=ledger.get_batch_counter(),
    )


@router.post("/admin", response_model=OkResponse)
async def transfer_admin(
    body: AdminRequest,
    ledger: BatchLedger = Depends(get_ledger),
    caller: Principal = Depends(get_current_principal),
):
    ensure_ok(await ledger.transfer_admin(caller, parse_principal(body.new_admin)))
    return OkResponse()


@router.post("/oracle", response_model=OkResponse)
async def set_oracle(
    body: OracleRequest,
    ledger: BatchLedger = Depends(get_ledger),
    caller: Principal = Depends(get_current_principal),
):
    ensure_ok(await ledger.set_oracle(caller, parse_principal(body.new_oracle)))
    return OkResponse()


@router.post("/pause", response_model=PausedOut)
async def set_paused(
    body: PauseRequest,
    ledger: BatchLedger = Depends(get_ledger),
    caller: Principal = Depends(get_current_principal),
):
    paused = ensure_ok(await ledger.set_paused(caller, body.paused))
    return PausedOut(paused=paused)
