"""
Module: treasury_kernel.db.immutability
Responsibility: Keep the tax record log append-only at the ORM layer.
Architecture position: Kernel > DB.  Models are imported inside the
    register/unregister functions, not at module import.

Invariants enforced:
    - A flush that would UPDATE or DELETE a TaxRecord raises
      ImmutabilityViolationError instead.

Failure modes:
    - ImmutabilityViolationError out of ``session.flush()``/``commit()``;
      the session must then be rolled back.

Note: Core ``update()``/``delete()`` statements skip mapper events.  No
code path issues them against tax_records.
"""

from sqlalchemy import event

from treasury_kernel.exceptions import ImmutabilityViolationError
from treasury_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _blocked(operation: str, target, reason: str) -> ImmutabilityViolationError:
    entity_id = str(target.id)
    logger.error(
        "immutability_violation_blocked",
        extra={"entity_type": "TaxRecord", "entity_id": entity_id, "operation": operation},
    )
    return ImmutabilityViolationError(
        entity_type="TaxRecord",
        entity_id=entity_id,
        reason=reason,
    )


def _reject_tax_record_update(mapper, connection, target):
    raise _blocked("UPDATE", target, "Tax records are append-only and cannot be modified")


def _reject_tax_record_delete(mapper, connection, target):
    raise _blocked("DELETE", target, "Tax records cannot be deleted")


_LISTENERS = (
    ("before_update", _reject_tax_record_update),
    ("before_delete", _reject_tax_record_delete),
)


def register_immutability_listeners() -> None:
    """
    Install the append-only guards on TaxRecord.

    Call once at startup, before any session flushes.  Repeated calls are
    harmless.
    """
    from treasury_kernel.models.tax_record import TaxRecord

    for name, fn in _LISTENERS:
        if not event.contains(TaxRecord, name, fn):
            event.listen(TaxRecord, name, fn)


def unregister_immutability_listeners() -> None:
    """Remove the guards.  Tests only."""
    from treasury_kernel.models.tax_record import TaxRecord

    for name, fn in _LISTENERS:
        if event.contains(TaxRecord, name, fn):
            event.remove(TaxRecord, name, fn)
