"""Aggregate model imports for Alembic auto-detection."""

from app.models.ledger_state import LedgerState  # noqa: F401
from app.models.batch import Batch  # noqa: F401
from app.models.batch_history import BatchHistory  # noqa: F401

from app.models.immutability import register_immutability_listeners

register_immutability_listeners()
