"""Uniform response envelope: success flag, error code, payload, message."""
from typing import Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    success: bool
    error: Optional[str] = None
    data: Optional[T] = None
    message: str = ""


def ok(data, message: str) -> dict:
    return {"success": True, "error": None, "data": data, "message": message}


def failure(code: str, message: str) -> dict:
    return {"success": False, "error": code, "data": None, "message": message}
