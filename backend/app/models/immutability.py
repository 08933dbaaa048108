"""ORM-level enforcement of the ledger's write-once rules.

SQLAlchemy fires mapper events before UPDATE / DELETE statements reach
the database.  The listeners here raise ImmutableRecordError, aborting
the flush (and with it the request's transaction), when code tries to:

    BatchHistory  → update or delete any row (the audit trail is append-only)
    Batch         → delete any row, change manufacturer / composition /
                    origin_timestamp, or set is_active back to True

The ledger itself never does any of these; reaching a listener means a
programming error, so it is an exception rather than a LedgerResult.
"""

import logging

from sqlalchemy import event, inspect

from app.models.batch import Batch
from app.models.batch_history import BatchHistory

logger = logging.getLogger("chemtrace.immutability")

BATCH_ORIGIN_FIELDS = ("manufacturer", "composition", "origin_timestamp")


class ImmutableRecordError(Exception):
    """A write-once ledger record was about to be modified or deleted."""

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"{entity_type} {entity_id}: {reason}")


def _blocked(entity_type: str, entity_id: str, operation: str, reason: str):
    logger.error(
        f"Immutability violation blocked: {operation} {entity_type} {entity_id}",
        extra={
            "entity_type": entity_type,
            "entity_id": entity_id,
            "operation": operation,
        },
    )
    return ImmutableRecordError(entity_type, entity_id, reason)


def _history_key(target: BatchHistory) -> str:
    return f"{target.batch_id}#{target.sequence}"


def _reject_history_update(mapper, connection, target):
    raise _blocked(
        "BatchHistory", _history_key(target), "UPDATE",
        "history records are append-only",
    )


def _reject_history_delete(mapper, connection, target):
    raise _blocked(
        "BatchHistory", _history_key(target), "DELETE",
        "history records are never deleted",
    )


def _reject_batch_delete(mapper, connection, target):
    raise _blocked(
        "Batch", str(target.id), "DELETE",
        "batches are terminated logically, never deleted",
    )


def _check_batch_update(mapper, connection, target):
    state = inspect(target)

    for name in BATCH_ORIGIN_FIELDS:
        if state.attrs[name].history.has_changes():
            raise _blocked(
                "Batch", str(target.id), "UPDATE",
                f"{name} is fixed at creation",
            )

    active = state.attrs.is_active.history
    if False in active.deleted and True in active.added:
        raise _blocked(
            "Batch", str(target.id), "UPDATE",
            "an inactive batch cannot be reactivated",
        )


_LISTENERS = (
    (BatchHistory, "before_update", _reject_history_update),
    (BatchHistory, "before_delete", _reject_history_delete),
    (Batch, "before_update", _check_batch_update),
    (Batch, "before_delete", _reject_batch_delete),
)


def register_immutability_listeners() -> None:
    """Install the listeners.  Safe to call more than once."""
    for target, name, fn in _LISTENERS:
        if not event.contains(target, name, fn):
            event.listen(target, name, fn)

