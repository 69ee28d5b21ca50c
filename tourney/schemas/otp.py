"""
Schemas for the OTP endpoints
"""
from pydantic import BaseModel
from typing import Optional, Union


class OTPSendRequest(BaseModel):
    phone: Optional[str] = None


class OTPVerifyRequest(BaseModel):
    phone: Optional[str] = None
    otp: Optional[Union[str, int]] = None


class OTPSendResponse(BaseModel):
    success: bool = True
    message: str
    requestId: str


class VerifiedUser(BaseModel):
    phone: str
    name: Optional[str] = None
    consentGiven: bool


class OTPVerifyResponse(BaseModel):
    success: bool = True
    message: str
    user: VerifiedUser
