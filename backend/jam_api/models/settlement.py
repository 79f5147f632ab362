"""ExpenseSettlement ORM model — one payer-to-receiver payment within an event."""
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Index, Numeric, String, UniqueConstraint

from jam_api.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SettlementStatus(str, enum.Enum):
    unconfirmed = "unconfirmed"
    payer_confirmed = "payer_confirmed"
    settled = "settled"


class ExpenseSettlement(Base):
    __tablename__ = "expense_settlements"
    __table_args__ = (
        UniqueConstraint("event_id", "payer_id", "receiver_id", "amount", name="uq_settlement_natural_key"),
        CheckConstraint("amount > 0", name="ck_settlement_amount_positive"),
        Index("ix_expense_settlements_event_id", "event_id"),
        Index("ix_expense_settlements_payer_id", "payer_id"),
        Index("ix_expense_settlements_receiver_id", "receiver_id"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(64), nullable=False)
    payer_id = Column(String(64), nullable=False)
    receiver_id = Column(String(64), nullable=False)
    amount = Column(Numeric(10, 2, asdecimal=True), nullable=False)
    payer_confirmed = Column(Boolean, nullable=False, default=False)
    receiver_confirmed = Column(Boolean, nullable=False, default=False)
    payer_confirmed_at = Column(DateTime(timezone=True), nullable=True)
    receiver_confirmed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def status(self) -> SettlementStatus:
        if self.payer_confirmed and self.receiver_confirmed:
            return SettlementStatus.settled
        if self.payer_confirmed:
            return SettlementStatus.payer_confirmed
        return SettlementStatus.unconfirmed

    @property
    def is_settled(self) -> bool:
        return self.status is SettlementStatus.settled

    def __repr__(self) -> str:
        return (
            f"<ExpenseSettlement {self.id} event={self.event_id} "
            f"{self.payer_id}->{self.receiver_id} {self.amount} {self.status.value}>"
        )
