"""
OTP delivery providers
"""
from .otp_provider import OTPProvider, DeliveryResult
from .msg91 import MSG91OTPProvider, MSG91FlowProvider
from .twilio_sms import TwilioSMSProvider
from .stub_provider import StubOTPProvider
from .otp_factory import get_otp_provider, get_delivery_chain

__all__ = [
    "OTPProvider",
    "DeliveryResult",
    "MSG91OTPProvider",
    "MSG91FlowProvider",
    "TwilioSMSProvider",
    "StubOTPProvider",
    "get_otp_provider",
    "get_delivery_chain",
]
