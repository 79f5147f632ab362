"""Pydantic schemas for Users."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class UserCreate(BaseModel):
    user_id: Optional[str] = None
    name: str
    email: Optional[str] = None
    profile_pic: Optional[str] = None


class UserOut(BaseModel):
    user_id: str
    name: str
    email: Optional[str] = None
    profile_pic: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
