"""
Phone identity and one-time credential lifecycle.

Codes are stored hashed on the identity record and committed before any
delivery attempt, so a failed send never invalidates a code that may still
arrive. Verification consumes the code with a compare-and-swap update.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.clock import utcnow
from ..core.config import settings
from ..core.errors import (
    ValidationError,
    IdentityNotFoundError,
    InvalidCredentialError,
    GatewayError,
)
from ..core.security import hash_otp, verify_otp_hash, generate_numeric_code
from ..models import User
from ..utils.phone import normalize_phone, get_phone_last4
from .auth import get_delivery_chain

logger = logging.getLogger(__name__)


@dataclass
class IssuedCredential:
    request_id: str
    phone: str
    expires_at: datetime
    provider: str


def _normalize_or_raise(phone) -> str:
    if phone is None or not str(phone).strip():
        raise ValidationError(["Phone number is required"], message="Phone number is required")
    try:
        return normalize_phone(str(phone))
    except ValueError as e:
        raise ValidationError([str(e)], message="Valid phone number is required")


def _find_user(db: Session, phone: str) -> Optional[User]:
    return db.query(User).filter(User.phone == phone).first()


def _get_or_create_user(db: Session, phone: str) -> User:
    user = _find_user(db, phone)
    if user is not None:
        return user

    user = User(phone=phone)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Another request created the same identity first
        db.rollback()
        user = _find_user(db, phone)
        if user is None:
            raise
        return user

    logger.info(f"[OTP] Created identity for {get_phone_last4(phone)}")
    return user


async def _issue(db: Session, user: User, now: datetime) -> IssuedCredential:
    phone = user.phone
    phone_last4 = get_phone_last4(phone)

    code = generate_numeric_code(settings.OTP_LENGTH)
    code_hash = hash_otp(code)
    expires_at = now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)

    user.otp_code_hash = code_hash
    user.otp_expires_at = expires_at
    user.otp_request_id = None
    user.updated_at = now
    db.commit()

    chain = get_delivery_chain()
    if not chain:
        logger.error(f"[OTP] No delivery provider available for {phone_last4}")
        raise GatewayError()

    result = None
    for provider in chain:
        try:
            result = await provider.send_otp(phone, code)
        except Exception as e:
            logger.error(f"[OTP] Provider {provider.name} raised for {phone_last4}: {e}", exc_info=True)
            result = None
            continue
        if result.ok:
            break
        logger.warning(f"[OTP] Provider {provider.name} failed for {phone_last4}: {result.error}")

    if result is None or not result.ok:
        logger.error(f"[OTP] All delivery channels failed for {phone_last4}")
        raise GatewayError()

    request_id = result.request_id or uuid.uuid4().hex
    # Only tag the credential that was just delivered
    db.execute(
        update(User)
        .where(User.id == user.id, User.otp_code_hash == code_hash)
        .values(otp_request_id=request_id[:64])
        .execution_options(synchronize_session=False)
    )
    db.commit()

    logger.info(f"[OTP] Code issued to {phone_last4} via {result.provider}")
    return IssuedCredential(
        request_id=request_id,
        phone=phone,
        expires_at=expires_at,
        provider=result.provider,
    )


async def issue_credential(db: Session, phone: str, now: Optional[datetime] = None) -> IssuedCredential:
    """
    Generate, store and deliver a new one-time code, creating the identity if needed.

    Raises:
        ValidationError: Phone missing or invalid
        GatewayError: Every delivery channel failed (the stored code stays valid)
    """
    normalized_phone = _normalize_or_raise(phone)
    user = _get_or_create_user(db, normalized_phone)
    return await _issue(db, user, now or utcnow())


async def resend_credential(db: Session, phone: str, now: Optional[datetime] = None) -> IssuedCredential:
    """Same as issue_credential but never creates an identity."""
    normalized_phone = _normalize_or_raise(phone)
    user = _find_user(db, normalized_phone)
    if user is None:
        raise IdentityNotFoundError("User not found")
    return await _issue(db, user, now or utcnow())


def verify_credential(db: Session, phone: str, code: str, now: Optional[datetime] = None) -> dict:
    """
    Check a presented code and consume it.

    Returns:
        Public profile of the verified identity

    Raises:
        ValidationError: Phone or code missing
        IdentityNotFoundError: No identity for this phone
        InvalidCredentialError: Wrong code, no live code, or code already consumed
    """
    if code is None or not str(code).strip():
        raise ValidationError(["OTP is required"], message="Phone number and OTP are required")
    normalized_phone = _normalize_or_raise(phone)
    phone_last4 = get_phone_last4(normalized_phone)
    now = now or utcnow()

    user = _find_user(db, normalized_phone)
    if user is None:
        raise IdentityNotFoundError("User not found")

    seen_hash = user.otp_code_hash
    if not user.has_live_credential(now) or not verify_otp_hash(str(code).strip(), seen_hash):
        logger.warning(f"[OTP] Invalid or expired code for {phone_last4}")
        raise InvalidCredentialError()

    consumed = db.execute(
        update(User)
        .where(User.id == user.id, User.otp_code_hash == seen_hash)
        .values(otp_code_hash=None, otp_expires_at=None, otp_request_id=None, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if consumed.rowcount != 1:
        db.rollback()
        logger.warning(f"[OTP] Code for {phone_last4} was already consumed")
        raise InvalidCredentialError()
    db.commit()
    db.refresh(user)

    logger.info(f"[OTP] Verified {phone_last4}")
    return user.public_profile()


def _consent_errors(phone, name, age, consent) -> list:
    errors = []
    if phone is None or not isinstance(phone, str) or not phone.strip():
        errors.append("Valid phone number is required")
    if name is None or not isinstance(name, str) or len(name.strip()) < 2:
        errors.append("Name must be at least 2 characters long")
    elif len(name.strip()) > 50:
        errors.append("Name cannot exceed 50 characters")
    if isinstance(age, bool) or not isinstance(age, int) or age < 18 or age > 100:
        errors.append("Age must be between 18 and 100 years")
    if not isinstance(consent, bool):
        errors.append("Consent must be true or false")
    return errors


def record_consent(db: Session, phone: str, name: str, age: int, consent: bool) -> dict:
    """
    Store profile fields and the consent flag for a known identity.

    Raises:
        ValidationError: Every invalid field is listed
        IdentityNotFoundError: The phone never requested a code
    """
    errors = _consent_errors(phone, name, age, consent)
    normalized_phone = None
    if "Valid phone number is required" not in errors:
        try:
            normalized_phone = normalize_phone(phone)
        except ValueError:
            errors.insert(0, "Valid phone number is required")
    if errors:
        raise ValidationError(errors)

    user = _find_user(db, normalized_phone)
    if user is None:
        raise IdentityNotFoundError()

    user.name = name.strip()
    user.age = age
    user.consent_given = consent
    user.updated_at = utcnow()
    db.commit()
    db.refresh(user)

    logger.info(f"[OTP] Consent recorded for {get_phone_last4(normalized_phone)}: {consent}")
    return user.profile_snapshot()


def get_profile(db: Session, phone: str) -> dict:
    normalized_phone = _normalize_or_raise(phone)
    user = _find_user(db, normalized_phone)
    if user is None:
        raise IdentityNotFoundError("User not found")
    return user.profile_snapshot()


def find_identity(db: Session, phone: str) -> Optional[User]:
    """Lookup by raw phone for other services; unparseable numbers resolve to None."""
    try:
        normalized_phone = normalize_phone(phone)
    except ValueError:
        return None
    return _find_user(db, normalized_phone)
