"""Identity resolution for settlement ledgers.

The settlement core only needs a read-only lookup from user id to display
identity. ``SqlIdentityResolver`` answers it from the local users table.
"""
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol

from sqlalchemy.orm import Session

from jam_api.models.user import User


@dataclass(frozen=True)
class UserIdentity:
    user_id: str
    name: str
    profile_pic: Optional[str] = None


class IdentityResolver(Protocol):
    def resolve(self, user_ids: Iterable[str]) -> dict[str, UserIdentity]:
        ...


class SqlIdentityResolver:
    """Resolves identities with a single query against the users table."""

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, user_ids: Iterable[str]) -> dict[str, UserIdentity]:
        ids = {uid for uid in user_ids if uid}
        if not ids:
            return {}
        users = self.db.query(User).filter(User.user_id.in_(sorted(ids))).all()
        return {
            u.user_id: UserIdentity(user_id=u.user_id, name=u.name, profile_pic=u.profile_pic)
            for u in users
        }
