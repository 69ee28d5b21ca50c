"""
Twilio direct SMS OTP provider
"""
import asyncio
import logging

from twilio.rest import Client
from twilio.base.exceptions import TwilioException

from ...core.config import settings
from ...utils.phone import get_phone_last4
from .otp_provider import OTPProvider, DeliveryResult

logger = logging.getLogger(__name__)


class TwilioSMSProvider(OTPProvider):
    """
    Sends the code as a plain SMS through the Twilio Messages API.
    Requires OTP_FROM_NUMBER to be configured.
    """

    name = "twilio_sms"

    def __init__(self, client: Client = None):
        if client is None:
            if not settings.TWILIO_ACCOUNT_SID or not settings.TWILIO_AUTH_TOKEN:
                raise ValueError("Twilio credentials not configured")
            client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)

        if not settings.OTP_FROM_NUMBER:
            raise ValueError("OTP_FROM_NUMBER not configured for SMS provider")

        self.client = client
        self.from_number = settings.OTP_FROM_NUMBER
        self.timeout_seconds = settings.GATEWAY_TIMEOUT_SECONDS

    async def send_otp(self, phone: str, code: str) -> DeliveryResult:
        phone_last4 = get_phone_last4(phone)

        def _create_message():
            """Blocking Twilio call, run in a worker thread"""
            return self.client.messages.create(
                body=f"Your tournament verification code is: {code}. It expires in {settings.OTP_EXPIRE_MINUTES} minutes.",
                from_=self.from_number,
                to=phone,
            )

        try:
            message = await asyncio.wait_for(
                asyncio.to_thread(_create_message),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(f"[OTP][TwilioSMS] Timeout sending to {phone_last4} (>{self.timeout_seconds}s)")
            return DeliveryResult(ok=False, provider=self.name, error="timeout")
        except TwilioException as e:
            logger.error(f"[OTP][TwilioSMS] Failed to send SMS to {phone_last4}: {e}")
            return DeliveryResult(ok=False, provider=self.name, error=str(e))

        logger.info(f"[OTP][TwilioSMS] SMS sent to {phone_last4}, SID: {message.sid}")
        return DeliveryResult(ok=True, provider=self.name, request_id=message.sid)
