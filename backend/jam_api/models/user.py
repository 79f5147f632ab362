"""User ORM model — display identity read by the settlement ledgers."""
import uuid
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from jam_api.database import Base


class User(Base):
    __tablename__ = "users"

    user_id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True, unique=True)
    profile_pic = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
