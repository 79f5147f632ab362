"""Settlement reconciliation — the confirmation state machine.

Responsibilities:
- Input validation and amount normalisation (two fractional digits)
- Idempotent confirm-payment upsert keyed by (event, payer, receiver, amount)
- Guarded confirm-receipt: only the receiver, only after the payer confirmed
- One transaction per transition; storage failures roll back and surface as StorageError

Lifecycle per settlement: unconfirmed -> payer_confirmed -> settled.
Confirm-payment creates rows directly in payer_confirmed.
"""
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from jam_api.config import settings
from jam_api.errors import NotFoundOrUnauthorized, PreconditionFailed, StorageError, ValidationError
from jam_api.models.settlement import ExpenseSettlement, utcnow
from jam_api.stores.settlement_store import SettlementStore

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
# NUMERIC(10, 2)
MAX_AMOUNT = Decimal("99999999.99")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _require(**fields: Any) -> None:
    missing = [name for name, value in fields.items() if _is_blank(value)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def normalize_amount(amount: Any) -> Decimal:
    """Parse ``amount`` into a positive Decimal quantized to cents."""
    if isinstance(amount, bool):
        raise ValidationError("Amount must be a number")
    if isinstance(amount, float):
        amount = str(amount)
    try:
        value = Decimal(amount) if not isinstance(amount, Decimal) else amount
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Amount must be a number, got {amount!r}")
    if not value.is_finite():
        raise ValidationError("Amount must be a finite number")
    value = value.quantize(CENT, rounding=ROUND_HALF_UP)
    if value <= 0:
        raise ValidationError("Amount must be greater than zero")
    if value > MAX_AMOUNT:
        raise ValidationError(f"Amount must not exceed {MAX_AMOUNT}")
    return value


def confirm_payment(
    db: Session,
    event_id: Optional[str],
    payer_id: Optional[str],
    receiver_id: Optional[str],
    amount: Any,
    max_attempts: Optional[int] = None,
) -> ExpenseSettlement:
    """Record that the payer paid the receiver; create the settlement if needed.

    Repeating the call for the same natural key returns the same row. A lost
    insert race (unique constraint hit) is retried as an update of the winner's row.
    """
    _require(event_id=event_id, payer_id=payer_id, receiver_id=receiver_id, amount=amount)
    amount = normalize_amount(amount)
    event_id, payer_id, receiver_id = str(event_id), str(payer_id), str(receiver_id)

    store = SettlementStore(db)
    attempts = max_attempts or settings.SETTLEMENT_UPSERT_RETRIES
    try:
        for attempt in range(1, attempts + 1):
            settlement = store.find_by_natural_key(event_id, payer_id, receiver_id, amount, for_update=True)
            if settlement is not None:
                if not settlement.payer_confirmed:
                    settlement.payer_confirmed = True
                    settlement.payer_confirmed_at = utcnow()
                    store.save(settlement)
                    logger.info("Payer %s confirmed payment on settlement %s", payer_id, settlement.id)
                else:
                    logger.info("Payment on settlement %s already confirmed; no change", settlement.id)
                db.commit()
                return settlement

            try:
                settlement = store.create(
                    event_id=event_id,
                    payer_id=payer_id,
                    receiver_id=receiver_id,
                    amount=amount,
                    payer_confirmed=True,
                    payer_confirmed_at=utcnow(),
                    receiver_confirmed=False,
                )
            except IntegrityError:
                logger.warning(
                    "Concurrent settlement insert for event %s (%s -> %s, %s), attempt %d/%d; retrying as update",
                    event_id, payer_id, receiver_id, amount, attempt, attempts,
                )
                continue

            db.commit()
            logger.info(
                "Created settlement %s for event %s: %s -> %s (%s)",
                settlement.id, event_id, payer_id, receiver_id, amount,
            )
            return settlement
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Storage failure confirming payment for event %s", event_id)
        raise StorageError("Could not record payment confirmation") from exc

    db.rollback()
    logger.error("Gave up reconciling settlement for event %s after %d attempts", event_id, attempts)
    raise StorageError("Could not record payment confirmation")


def confirm_receipt(db: Session, settlement_id: Optional[str], user_id: Optional[str]) -> ExpenseSettlement:
    """Record that the receiver got the money. Only the receiver may do this."""
    _require(settlement_id=settlement_id, user_id=user_id)
    settlement_id, user_id = str(settlement_id), str(user_id)

    store = SettlementStore(db)
    try:
        settlement = store.find_by_id(settlement_id, receiver_id=user_id, for_update=True)
        if settlement is None:
            db.rollback()
            raise NotFoundOrUnauthorized("Settlement not found or unauthorized")

        if not settlement.payer_confirmed:
            db.rollback()
            raise PreconditionFailed("Payment must be confirmed by payer first")

        if not settlement.receiver_confirmed:
            settlement.receiver_confirmed = True
            settlement.receiver_confirmed_at = utcnow()
            store.save(settlement)
            logger.info("Receiver %s confirmed receipt on settlement %s; fully settled", user_id, settlement_id)
        else:
            logger.info("Receipt on settlement %s already confirmed; no change", settlement_id)
        db.commit()
        return settlement
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Storage failure confirming receipt for settlement %s", settlement_id)
        raise StorageError("Could not record receipt confirmation") from exc
