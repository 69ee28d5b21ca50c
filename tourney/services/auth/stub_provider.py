"""
Stub OTP provider for dev/test environments
"""
import logging
import uuid

from ...core.config import settings
from ...utils.phone import get_phone_last4
from .otp_provider import OTPProvider, DeliveryResult

logger = logging.getLogger(__name__)


class StubOTPProvider(OTPProvider):
    """
    Logs the code instead of sending it.

    The code is real: verification still goes through the stored credential.
    """

    name = "stub"

    def __init__(self):
        if settings.ENV == "prod":
            logger.warning("[OTP][Stub] WARNING: Stub provider enabled in production! This should not happen.")

    async def send_otp(self, phone: str, code: str) -> DeliveryResult:
        logger.info(f"[OTP][Stub] Code for {get_phone_last4(phone)}: {code}")
        return DeliveryResult(ok=True, provider=self.name, request_id=f"stub-{uuid.uuid4().hex[:12]}")
