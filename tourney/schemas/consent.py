"""
Schemas for consent and profile endpoints
"""
from pydantic import BaseModel
from typing import Any, Optional


class ConsentRequest(BaseModel):
    """Values are left untyped so that every invalid field is reported together."""
    phone: Optional[Any] = None
    name: Optional[Any] = None
    age: Optional[Any] = None
    consent: Optional[Any] = None


class ProfileSnapshot(BaseModel):
    phone: str
    name: Optional[str] = None
    age: Optional[int] = None
    consentGiven: bool


class ConsentResponse(BaseModel):
    success: bool = True
    message: str
    user: ProfileSnapshot


class ProfileResponse(BaseModel):
    success: bool = True
    user: ProfileSnapshot
