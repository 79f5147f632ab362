"""Models package - import all models so they register with Base.metadata."""
from jam_api.models.settlement import ExpenseSettlement, SettlementStatus
from jam_api.models.user import User

__all__ = [
    "ExpenseSettlement",
    "SettlementStatus",
    "User",
]
