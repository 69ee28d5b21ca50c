"""
Consent and profile endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..db import get_db
from ..schemas.consent import ConsentRequest, ConsentResponse, ProfileResponse
from ..services import identity_service

router = APIRouter(prefix="/consent", tags=["consent"])


@router.post("", response_model=ConsentResponse)
def submit_consent(payload: ConsentRequest, db: Session = Depends(get_db)):
    user = identity_service.record_consent(
        db,
        phone=payload.phone,
        name=payload.name,
        age=payload.age,
        consent=payload.consent,
    )
    return ConsentResponse(message="Profile updated successfully", user=user)


@router.get("/profile", response_model=ProfileResponse)
def get_profile(phone: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return ProfileResponse(user=identity_service.get_profile(db, phone))
