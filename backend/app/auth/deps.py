"""FastAPI dependencies for authentication and the ledger binding.

Dependencies:
  get_current_principal → decode JWT, return the caller's Principal
  get_ledger            → open a BatchLedger on the request session
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import decode_token
from app.database import get_db
from app.ledger.principal import Principal, parse_principal
from app.ledger.service import BatchLedger, open_ledger
from app.utils.clock import Clock, get_clock

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    """Authenticate the request and return the caller's principal.

    Authorization is not decided here: the ledger compares the principal
    against its admin / oracle / owner records and rejects with
    NOT_AUTHORIZED itself.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials)
    try:
        principal = parse_principal(payload.get("sub"))
    except ValueError:
        principal = None
    if principal is None or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


async def get_ledger(
    _caller: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> BatchLedger:
    """Open the ledger for an authenticated request (401 before any DB access)."""
    return await open_ledger(db, clock)
