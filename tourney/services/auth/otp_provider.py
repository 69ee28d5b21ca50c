"""
Abstract OTP delivery provider interface
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class DeliveryResult:
    ok: bool
    provider: str
    request_id: Optional[str] = None
    error: Optional[str] = None


class OTPProvider(ABC):
    """
    Delivery channel for one-time codes.

    Providers only deliver; code generation, storage and verification live in
    the identity service so a stored code survives a failed delivery.
    """

    name = "base"

    @abstractmethod
    async def send_otp(self, phone: str, code: str) -> DeliveryResult:
        """
        Deliver ``code`` to ``phone``.

        Args:
            phone: Normalized phone number in E.164 format
            code: Numeric one-time code

        Returns:
            DeliveryResult; transport errors are reported with ok=False, not raised
        """
        pass
