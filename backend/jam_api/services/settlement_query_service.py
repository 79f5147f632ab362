"""Read paths over settlements: per-event and per-user ledgers.

Rows come newest first and are enriched with payer/receiver display identity
resolved in one batch per call.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from jam_api.errors import StorageError, ValidationError
from jam_api.models.settlement import ExpenseSettlement, SettlementStatus
from jam_api.services.identity_service import IdentityResolver, SqlIdentityResolver, UserIdentity
from jam_api.stores.settlement_store import SettlementStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettlementView:
    settlement: ExpenseSettlement
    payer: Optional[UserIdentity]
    receiver: Optional[UserIdentity]


def _parse_status(status: Union[str, SettlementStatus, None]) -> Optional[SettlementStatus]:
    if status is None or isinstance(status, SettlementStatus):
        return status
    try:
        return SettlementStatus(status)
    except ValueError:
        allowed = ", ".join(s.value for s in SettlementStatus)
        raise ValidationError(f"Invalid status filter: {status!r} (expected one of {allowed})")


def _enrich(settlements: list[ExpenseSettlement], identities: IdentityResolver) -> list[SettlementView]:
    ids = {s.payer_id for s in settlements} | {s.receiver_id for s in settlements}
    resolved = identities.resolve(ids)
    return [
        SettlementView(settlement=s, payer=resolved.get(s.payer_id), receiver=resolved.get(s.receiver_id))
        for s in settlements
    ]


def get_event_settlements(
    db: Session,
    event_id: Optional[str],
    status: Union[str, SettlementStatus, None] = None,
    identities: Optional[IdentityResolver] = None,
) -> list[SettlementView]:
    """All settlements recorded for an event."""
    if not event_id or not str(event_id).strip():
        raise ValidationError("Event ID is required")
    status = _parse_status(status)
    try:
        rows = SettlementStore(db).list_by_event(str(event_id), status=status)
        return _enrich(rows, identities or SqlIdentityResolver(db))
    except SQLAlchemyError as exc:
        logger.exception("Storage failure listing settlements for event %s", event_id)
        raise StorageError("Could not fetch settlements") from exc


def get_user_settlements(
    db: Session,
    user_id: Optional[str],
    event_id: Optional[str] = None,
    status: Union[str, SettlementStatus, None] = None,
    identities: Optional[IdentityResolver] = None,
) -> list[SettlementView]:
    """Settlements where the user pays or receives, across events unless one is given."""
    if not user_id or not str(user_id).strip():
        raise ValidationError("User ID is required")
    status = _parse_status(status)
    try:
        rows = SettlementStore(db).list_by_user(str(user_id), event_id=event_id or None, status=status)
        return _enrich(rows, identities or SqlIdentityResolver(db))
    except SQLAlchemyError as exc:
        logger.exception("Storage failure listing settlements for user %s", user_id)
        raise StorageError("Could not fetch user settlements") from exc
