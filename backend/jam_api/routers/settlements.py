"""Settlement API routes — delegate to the reconciliation and query services."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from jam_api.database import get_db
from jam_api.models.settlement import SettlementStatus
from jam_api.schemas.response import ApiResponse, ok
from jam_api.schemas.settlement import (
    ConfirmPaymentRequest,
    ConfirmReceiptRequest,
    SettlementOut,
    SettlementWithParticipantsOut,
)
from jam_api.services import settlement_query_service, settlement_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/settlements/confirm-payment", response_model=ApiResponse[SettlementOut])
def confirm_payment(payload: ConfirmPaymentRequest, db: Session = Depends(get_db)):
    """Payer says "I paid". Creates the settlement or re-confirms the existing one."""
    settlement = settlement_service.confirm_payment(
        db=db,
        event_id=payload.event_id,
        payer_id=payload.payer_id,
        receiver_id=payload.receiver_id,
        amount=payload.amount,
    )
    return ok(SettlementOut.model_validate(settlement), "Payment confirmation recorded")


@router.post("/settlements/confirm-receipt", response_model=ApiResponse[SettlementOut])
def confirm_receipt(payload: ConfirmReceiptRequest, db: Session = Depends(get_db)):
    """Receiver says "I got it". Only allowed after the payer confirmed."""
    settlement = settlement_service.confirm_receipt(
        db=db,
        settlement_id=payload.settlement_id,
        user_id=payload.user_id,
    )
    return ok(SettlementOut.model_validate(settlement), "Receipt confirmation recorded")


@router.get("/settlements/{event_id}", response_model=ApiResponse[list[SettlementWithParticipantsOut]])
def get_event_settlements(
    event_id: str,
    status: Optional[SettlementStatus] = Query(None),
    db: Session = Depends(get_db),
):
    """All settlements for an event, newest first, with payer/receiver identity."""
    views = settlement_query_service.get_event_settlements(db, event_id, status=status)
    return ok([SettlementWithParticipantsOut.from_view(v) for v in views], "Settlements fetched successfully")


@router.get("/user-settlements/{user_id}", response_model=ApiResponse[list[SettlementWithParticipantsOut]])
def get_user_settlements(
    user_id: str,
    event_id: Optional[str] = Query(None),
    status: Optional[SettlementStatus] = Query(None),
    db: Session = Depends(get_db),
):
    """Settlements the user pays or receives, optionally limited to one event."""
    views = settlement_query_service.get_user_settlements(db, user_id, event_id=event_id, status=status)
    return ok(
        [SettlementWithParticipantsOut.from_view(v) for v in views],
        "User settlements fetched successfully",
    )
