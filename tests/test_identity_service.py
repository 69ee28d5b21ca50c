"""
Identity and one-time credential tests: issue, verify, resend, consent
"""
from datetime import timedelta
from unittest.mock import patch

import pytest

from tourney.core.clock import utcnow
from tourney.core.errors import (
    ValidationError,
    IdentityNotFoundError,
    InvalidCredentialError,
    GatewayError,
)
from tourney.models import User
from tourney.services import identity_service
from tourney.services.auth.otp_provider import OTPProvider, DeliveryResult

PHONE = "+12015550123"


class RecordingProvider(OTPProvider):
    """Captures delivered codes; optionally fails every send."""

    def __init__(self, name="recording", ok=True, request_id="req-1"):
        self.name = name
        self.ok = ok
        self.request_id = request_id
        self.sent = []

    async def send_otp(self, phone, code):
        self.sent.append((phone, code))
        if self.ok:
            return DeliveryResult(ok=True, provider=self.name, request_id=self.request_id)
        return DeliveryResult(ok=False, provider=self.name, error="boom")


@pytest.fixture
def provider():
    recording = RecordingProvider()
    with patch("tourney.services.identity_service.get_delivery_chain", return_value=[recording]):
        yield recording


def _user(db, phone=PHONE):
    db.expire_all()
    return db.query(User).filter(User.phone == phone).first()


@pytest.mark.asyncio
async def test_issue_creates_identity_and_stores_hashed_code(db, provider):
    issued = await identity_service.issue_credential(db, PHONE)

    assert issued.request_id == "req-1"
    assert issued.phone == PHONE
    user = _user(db)
    assert user is not None
    assert user.consent_given is False
    code = provider.sent[0][1]
    assert len(code) == 6 and code.isdigit()
    assert user.otp_code_hash and user.otp_code_hash != code
    assert user.otp_request_id == "req-1"


@pytest.mark.asyncio
async def test_issue_expiry_is_five_minutes(db, provider):
    now = utcnow()
    issued = await identity_service.issue_credential(db, PHONE, now=now)
    assert issued.expires_at == now + timedelta(minutes=5)


@pytest.mark.asyncio
async def test_issue_normalizes_phone(db, provider):
    await identity_service.issue_credential(db, "9876543210")
    assert _user(db, "+919876543210") is not None
    assert provider.sent[0][0] == "+919876543210"


@pytest.mark.asyncio
@pytest.mark.parametrize("phone", [None, "", "   "])
async def test_issue_requires_phone(db, provider, phone):
    with pytest.raises(ValidationError):
        await identity_service.issue_credential(db, phone)
    assert provider.sent == []


@pytest.mark.asyncio
async def test_issue_twice_keeps_single_identity(db, provider):
    await identity_service.issue_credential(db, PHONE)
    await identity_service.issue_credential(db, PHONE)
    assert db.query(User).filter(User.phone == PHONE).count() == 1


@pytest.mark.asyncio
async def test_verify_succeeds_once(db, provider):
    now = utcnow()
    await identity_service.issue_credential(db, PHONE, now=now)
    code = provider.sent[-1][1]

    profile = identity_service.verify_credential(db, PHONE, code, now=now + timedelta(seconds=299))
    assert profile == {"phone": PHONE, "name": None, "consentGiven": False}

    user = _user(db)
    assert user.otp_code_hash is None
    assert user.otp_expires_at is None

    with pytest.raises(InvalidCredentialError):
        identity_service.verify_credential(db, PHONE, code, now=now + timedelta(seconds=299))


@pytest.mark.asyncio
async def test_verify_after_expiry_fails(db, provider):
    now = utcnow()
    await identity_service.issue_credential(db, PHONE, now=now)
    code = provider.sent[-1][1]

    with pytest.raises(InvalidCredentialError):
        identity_service.verify_credential(db, PHONE, code, now=now + timedelta(seconds=301))

    with pytest.raises(InvalidCredentialError):
        identity_service.verify_credential(db, PHONE, code, now=now + timedelta(minutes=5))


@pytest.mark.asyncio
async def test_verify_wrong_code_fails_and_keeps_credential(db, provider):
    await identity_service.issue_credential(db, PHONE)
    code = provider.sent[-1][1]
    wrong = "000000" if code != "000000" else "111111"

    with pytest.raises(InvalidCredentialError):
        identity_service.verify_credential(db, PHONE, wrong)

    assert identity_service.verify_credential(db, PHONE, code)["phone"] == PHONE


def test_verify_unknown_identity(db):
    with pytest.raises(IdentityNotFoundError):
        identity_service.verify_credential(db, PHONE, "123456")


def test_verify_requires_code(db, make_user):
    make_user(phone=PHONE)
    with pytest.raises(ValidationError):
        identity_service.verify_credential(db, PHONE, "")


def test_verify_without_issued_code(db, make_user):
    make_user(phone=PHONE)
    with pytest.raises(InvalidCredentialError):
        identity_service.verify_credential(db, PHONE, "123456")


@pytest.mark.asyncio
async def test_resend_replaces_code(db, provider):
    await identity_service.issue_credential(db, PHONE)
    first = provider.sent[-1][1]
    with patch("tourney.services.identity_service.generate_numeric_code", return_value="654321"):
        await identity_service.resend_credential(db, PHONE)

    if first != "654321":
        with pytest.raises(InvalidCredentialError):
            identity_service.verify_credential(db, PHONE, first)
    assert identity_service.verify_credential(db, PHONE, "654321")["phone"] == PHONE


@pytest.mark.asyncio
async def test_resend_never_creates_identity(db, provider):
    with pytest.raises(IdentityNotFoundError):
        await identity_service.resend_credential(db, PHONE)
    assert _user(db) is None
    assert provider.sent == []


@pytest.mark.asyncio
async def test_gateway_failure_keeps_stored_code(db):
    failing = RecordingProvider(ok=False)
    with patch("tourney.services.identity_service.get_delivery_chain", return_value=[failing]):
        with pytest.raises(GatewayError):
            await identity_service.issue_credential(db, PHONE)

    code = failing.sent[0][1]
    assert identity_service.verify_credential(db, PHONE, code)["phone"] == PHONE


@pytest.mark.asyncio
async def test_fallback_channel_used_once(db):
    primary = RecordingProvider(name="primary", ok=False)
    fallback = RecordingProvider(name="fallback", request_id="fb-7")
    with patch("tourney.services.identity_service.get_delivery_chain", return_value=[primary, fallback]):
        issued = await identity_service.issue_credential(db, PHONE)

    assert issued.provider == "fallback"
    assert issued.request_id == "fb-7"
    assert len(primary.sent) == 1
    assert len(fallback.sent) == 1
    assert primary.sent[0][1] == fallback.sent[0][1]


@pytest.mark.asyncio
async def test_provider_exception_counts_as_failure(db):
    class ExplodingProvider(RecordingProvider):
        async def send_otp(self, phone, code):
            raise RuntimeError("socket closed")

    fallback = RecordingProvider(name="fallback")
    with patch(
        "tourney.services.identity_service.get_delivery_chain",
        return_value=[ExplodingProvider(name="primary"), fallback],
    ):
        issued = await identity_service.issue_credential(db, PHONE)
    assert issued.provider == "fallback"


@pytest.mark.asyncio
async def test_empty_delivery_chain_is_gateway_error(db):
    with patch("tourney.services.identity_service.get_delivery_chain", return_value=[]):
        with pytest.raises(GatewayError):
            await identity_service.issue_credential(db, PHONE)


@pytest.mark.asyncio
async def test_missing_request_id_is_generated(db):
    silent = RecordingProvider(request_id=None)
    with patch("tourney.services.identity_service.get_delivery_chain", return_value=[silent]):
        issued = await identity_service.issue_credential(db, PHONE)
    assert issued.request_id
    assert _user(db).otp_request_id == issued.request_id


def test_record_consent_updates_profile(db, make_user):
    make_user(phone=PHONE, name=None, age=None, consent=False)

    snapshot = identity_service.record_consent(db, PHONE, "  Asha  ", 21, True)

    assert snapshot == {"phone": PHONE, "name": "Asha", "age": 21, "consentGiven": True}
    assert _user(db).consent_given is True


def test_record_consent_is_idempotent(db, make_user):
    make_user(phone=PHONE, name=None, age=None, consent=False)
    first = identity_service.record_consent(db, PHONE, "Asha", 21, True)
    second = identity_service.record_consent(db, PHONE, "Asha", 21, True)
    assert first == second


def test_record_consent_lists_every_invalid_field(db):
    with pytest.raises(ValidationError) as exc_info:
        identity_service.record_consent(db, "", "A", 17, "yes")

    assert exc_info.value.errors == [
        "Valid phone number is required",
        "Name must be at least 2 characters long",
        "Age must be between 18 and 100 years",
        "Consent must be true or false",
    ]


@pytest.mark.parametrize("age", [18, 100])
def test_record_consent_age_bounds_inclusive(db, make_user, age):
    make_user(phone=PHONE, consent=False)
    assert identity_service.record_consent(db, PHONE, "Asha", age, True)["age"] == age


@pytest.mark.parametrize("age", [17, 101, True])
def test_record_consent_rejects_age(db, make_user, age):
    make_user(phone=PHONE, consent=False)
    with pytest.raises(ValidationError):
        identity_service.record_consent(db, PHONE, "Asha", age, True)


def test_record_consent_unknown_identity(db):
    with pytest.raises(IdentityNotFoundError):
        identity_service.record_consent(db, PHONE, "Asha", 21, True)


def test_get_profile_hides_credential(db, make_user):
    make_user(phone=PHONE, name="Asha", age=30)
    profile = identity_service.get_profile(db, PHONE)
    assert profile == {"phone": PHONE, "name": "Asha", "age": 30, "consentGiven": True}


def test_get_profile_unknown(db):
    with pytest.raises(IdentityNotFoundError):
        identity_service.get_profile(db, PHONE)
