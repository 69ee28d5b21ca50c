"""
OTP delivery chain factory
"""
import logging
from typing import List

from ...core.config import settings
from .otp_provider import OTPProvider
from .msg91 import MSG91OTPProvider, MSG91FlowProvider
from .twilio_sms import TwilioSMSProvider
from .stub_provider import StubOTPProvider

logger = logging.getLogger(__name__)

PROVIDERS = {
    "msg91": MSG91OTPProvider,
    "msg91_flow": MSG91FlowProvider,
    "twilio_sms": TwilioSMSProvider,
    "stub": StubOTPProvider,
}


def get_otp_provider(provider_type: str) -> OTPProvider:
    """
    Build a provider by name.

    Raises:
        ValueError: Unknown provider or missing credentials
    """
    provider_cls = PROVIDERS.get(provider_type.lower())
    if provider_cls is None:
        raise ValueError(
            f"Unknown OTP provider: {provider_type}. Must be one of: {', '.join(sorted(PROVIDERS))}"
        )
    return provider_cls()


def get_delivery_chain() -> List[OTPProvider]:
    """
    Primary provider followed by at most one fallback.

    A provider that cannot be initialized is logged and left out; an empty
    chain makes delivery fail with GatewayError.
    """
    names = [settings.OTP_PROVIDER]
    fallback = (settings.OTP_FALLBACK_PROVIDER or "none").lower()
    if fallback not in ("", "none") and fallback != settings.OTP_PROVIDER.lower():
        names.append(fallback)

    chain: List[OTPProvider] = []
    for name in names:
        try:
            chain.append(get_otp_provider(name))
        except ValueError as e:
            logger.error(f"[OTP] Failed to initialize provider '{name}': {e}")
    return chain
