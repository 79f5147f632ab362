"""Pydantic schemas for expense settlements."""
from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel

from jam_api.models.settlement import SettlementStatus


class ConfirmPaymentRequest(BaseModel):
    # Presence is checked by the service so every missing field reports the same way
    event_id: Optional[str] = None
    receiver_id: Optional[str] = None
    amount: Optional[Decimal] = None
    payer_id: Optional[str] = None


class ConfirmReceiptRequest(BaseModel):
    settlement_id: Optional[str] = None
    user_id: Optional[str] = None


class ParticipantOut(BaseModel):
    user_id: str
    name: str
    profile_pic: Optional[str] = None

    model_config = {"from_attributes": True}


class SettlementOut(BaseModel):
    id: str
    event_id: str
    payer_id: str
    receiver_id: str
    amount: Decimal
    payer_confirmed: bool
    receiver_confirmed: bool
    payer_confirmed_at: Optional[datetime] = None
    receiver_confirmed_at: Optional[datetime] = None
    status: SettlementStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class SettlementWithParticipantsOut(SettlementOut):
    payer: Optional[ParticipantOut] = None
    receiver: Optional[ParticipantOut] = None

    @classmethod
    def from_view(cls, view) -> SettlementWithParticipantsOut:
        base = SettlementOut.model_validate(view.settlement).model_dump()
        return cls(
            **base,
            payer=ParticipantOut.model_validate(view.payer) if view.payer else None,
            receiver=ParticipantOut.model_validate(view.receiver) if view.receiver else None,
        )
