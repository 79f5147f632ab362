"""SettlementStore — durable keyed storage for expense settlements.

The store returns ``None`` for absent rows and never decides what absence
means; that is the caller's job. It never commits either: the reconciliation
service owns the transaction boundary.
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query, Session

from jam_api.models.settlement import ExpenseSettlement, SettlementStatus


class SettlementStore:
    """Repository for expense settlement rows."""

    def __init__(self, db: Session):
        self.db = db

    def _query(self, for_update: bool = False) -> Query:
        query = self.db.query(ExpenseSettlement)
        if for_update:
            query = query.with_for_update()
        return query

    def find_by_natural_key(
        self,
        event_id: str,
        payer_id: str,
        receiver_id: str,
        amount: Decimal,
        *,
        for_update: bool = False,
    ) -> Optional[ExpenseSettlement]:
        return (
            self._query(for_update)
            .filter(
                ExpenseSettlement.event_id == event_id,
                ExpenseSettlement.payer_id == payer_id,
                ExpenseSettlement.receiver_id == receiver_id,
                ExpenseSettlement.amount == amount,
            )
            .first()
        )

    def find_by_id(
        self,
        settlement_id: str,
        *,
        receiver_id: Optional[str] = None,
        for_update: bool = False,
    ) -> Optional[ExpenseSettlement]:
        """Fetch by id, optionally only if ``receiver_id`` matches."""
        query = self._query(for_update).filter(ExpenseSettlement.id == settlement_id)
        if receiver_id is not None:
            query = query.filter(ExpenseSettlement.receiver_id == receiver_id)
        return query.first()

    def create(self, **attrs) -> ExpenseSettlement:
        """Insert a new settlement inside a SAVEPOINT.

        A natural-key collision raises ``IntegrityError`` after the savepoint
        is rolled back, leaving the enclosing transaction usable.
        """
        settlement = ExpenseSettlement(**attrs)
        with self.db.begin_nested():
            self.db.add(settlement)
            self.db.flush()
        return settlement

    def save(self, settlement: ExpenseSettlement) -> ExpenseSettlement:
        settlement.updated_at = datetime.now(timezone.utc)
        self.db.add(settlement)
        self.db.flush()
        return settlement

    def list_by_event(self, event_id: str, status: Optional[SettlementStatus] = None) -> list[ExpenseSettlement]:
        query = self.db.query(ExpenseSettlement).filter(ExpenseSettlement.event_id == event_id)
        return _ordered(_filter_status(query, status)).all()

    def list_by_user(
        self,
        user_id: str,
        event_id: Optional[str] = None,
        status: Optional[SettlementStatus] = None,
    ) -> list[ExpenseSettlement]:
        """Settlements where the user is payer or receiver, newest first."""
        query = self.db.query(ExpenseSettlement).filter(
            or_(ExpenseSettlement.payer_id == user_id, ExpenseSettlement.receiver_id == user_id)
        )
        if event_id:
            query = query.filter(ExpenseSettlement.event_id == event_id)
        return _ordered(_filter_status(query, status)).all()


def _filter_status(query: Query, status: Optional[SettlementStatus]) -> Query:
    if status is None:
        return query
    if status is SettlementStatus.settled:
        return query.filter(
            and_(ExpenseSettlement.payer_confirmed.is_(True), ExpenseSettlement.receiver_confirmed.is_(True))
        )
    if status is SettlementStatus.payer_confirmed:
        return query.filter(
            and_(ExpenseSettlement.payer_confirmed.is_(True), ExpenseSettlement.receiver_confirmed.is_(False))
        )
    return query.filter(ExpenseSettlement.payer_confirmed.is_(False))


def _ordered(query: Query) -> Query:
    return query.order_by(ExpenseSettlement.created_at.desc())
