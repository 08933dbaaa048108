"""Pydantic schemas for the ledger's admin surface."""

from pydantic import BaseModel, Field

from app.ledger.principal import PRINCIPAL_MAX_LENGTH


class LedgerStatusOut(BaseModel):
    admin: str
    oracle: str | None = None
    paused: bool
    batch_counter: int


class AdminRequest(BaseModel):
    new_admin: str | None = Field(None, max_length=PRINCIPAL_MAX_LENGTH)


class OracleRequest(BaseModel):
    new_oracle: str | None = Field(None, max_length=PRINCIPAL_MAX_LENGTH)


class PauseRequest(BaseModel):
    paused: bool


class PausedOut(BaseModel):
    paused: bool
