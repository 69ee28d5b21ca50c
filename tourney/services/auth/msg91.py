"""
MSG91 OTP providers (httpx).

``MSG91OTPProvider`` uses the dedicated OTP endpoint; ``MSG91FlowProvider``
sends the same code through a flow (SMS template) and is the usual fallback.
"""
import logging
from typing import Optional

import httpx

from ...core.config import settings
from ...utils.phone import get_phone_last4
from .otp_provider import OTPProvider, DeliveryResult

logger = logging.getLogger(__name__)


class _MSG91Base(OTPProvider):
    path = ""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        if not settings.MSG91_AUTH_KEY:
            raise ValueError("MSG91_AUTH_KEY not configured")
        if not settings.MSG91_TEMPLATE_ID:
            raise ValueError("MSG91_TEMPLATE_ID not configured")

        self.auth_key = settings.MSG91_AUTH_KEY
        self.template_id = settings.MSG91_TEMPLATE_ID
        self.base_url = settings.MSG91_BASE_URL
        self.timeout_seconds = settings.GATEWAY_TIMEOUT_SECONDS
        self._transport = transport

    def _payload(self, mobile: str, code: str) -> dict:
        raise NotImplementedError

    async def send_otp(self, phone: str, code: str) -> DeliveryResult:
        phone_last4 = get_phone_last4(phone)
        # MSG91 expects the country code without the leading '+'
        mobile = phone.lstrip("+")

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.path,
                    json=self._payload(mobile, code),
                    headers={"Content-Type": "application/json", "authkey": self.auth_key},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            detail = e.response.text[:200] if e.response is not None else str(e)
            logger.error(
                f"[OTP][{self.name}] HTTP {e.response.status_code} sending to {phone_last4}: {detail}"
            )
            return DeliveryResult(ok=False, provider=self.name, error=f"HTTP {e.response.status_code}")
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[OTP][{self.name}] Failed to send to {phone_last4}: {type(e).__name__}: {e}")
            return DeliveryResult(ok=False, provider=self.name, error=str(e))

        if not isinstance(data, dict):
            data = {}
        if data.get("type") == "error":
            message = data.get("message", "unknown error")
            logger.error(f"[OTP][{self.name}] Rejected for {phone_last4}: {message}")
            return DeliveryResult(ok=False, provider=self.name, error=message)

        request_id = data.get("request_id") or data.get("message")
        logger.info(f"[OTP][{self.name}] Sent to {phone_last4}, request_id: {request_id}")
        return DeliveryResult(ok=True, provider=self.name, request_id=request_id)


class MSG91OTPProvider(_MSG91Base):
    name = "msg91"
    path = "/api/v5/otp"

    def _payload(self, mobile: str, code: str) -> dict:
        return {
            "template_id": self.template_id,
            "mobile": mobile,
            "authkey": self.auth_key,
            "otp": code,
            "otp_expiry": settings.OTP_EXPIRE_MINUTES,
        }


class MSG91FlowProvider(_MSG91Base):
    name = "msg91_flow"
    path = "/api/v5/flow/"

    def _payload(self, mobile: str, code: str) -> dict:
        return {
            "template_id": self.template_id,
            "short_url": "0",
            "recipients": [{"mobiles": mobile, "OTP": code}],
        }
