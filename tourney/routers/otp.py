"""
OTP issue, verify and resend endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..schemas.otp import OTPSendRequest, OTPSendResponse, OTPVerifyRequest, OTPVerifyResponse
from ..services import identity_service

router = APIRouter(prefix="/otp", tags=["otp"])


@router.post("/send", response_model=OTPSendResponse)
async def send_otp(payload: OTPSendRequest, db: Session = Depends(get_db)):
    issued = await identity_service.issue_credential(db, payload.phone)
    return OTPSendResponse(message="OTP sent successfully", requestId=issued.request_id)


@router.post("/verify", response_model=OTPVerifyResponse)
def verify_otp(payload: OTPVerifyRequest, db: Session = Depends(get_db)):
    user = identity_service.verify_credential(db, payload.phone, payload.otp)
    return OTPVerifyResponse(message="OTP verified successfully", user=user)


@router.post("/resend", response_model=OTPSendResponse)
async def resend_otp(payload: OTPSendRequest, db: Session = Depends(get_db)):
    issued = await identity_service.resend_credential(db, payload.phone)
    return OTPSendResponse(message="OTP resent successfully", requestId=issued.request_id)
