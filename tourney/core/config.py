from pydantic import BaseModel
import os
import logging


class Settings(BaseModel):
    # Environment: local, dev, test, staging, prod
    ENV: str = os.getenv("ENV", "dev")
    APP_VERSION: str = os.getenv("APP_VERSION", "1.0.0")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./tourney.db")

    # CORS origin for the player-facing frontend (comma-separated, "*" allowed in dev)
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "*")

    # Admin surface: when set, admin routes require a matching X-Admin-Key header
    ADMIN_API_KEY: str = os.getenv("ADMIN_API_KEY", "")

    # Phone numbers without a country code are parsed in this region
    PHONE_DEFAULT_REGION: str = os.getenv("PHONE_DEFAULT_REGION", "IN")

    # One-time codes
    OTP_LENGTH: int = int(os.getenv("OTP_LENGTH", "6"))
    OTP_EXPIRE_MINUTES: int = int(os.getenv("OTP_EXPIRE_MINUTES", "5"))
    OTP_PROVIDER: str = os.getenv("OTP_PROVIDER", "stub")  # msg91, twilio_sms, stub
    OTP_FALLBACK_PROVIDER: str = os.getenv("OTP_FALLBACK_PROVIDER", "none")  # msg91_flow, twilio_sms, stub, none
    GATEWAY_TIMEOUT_SECONDS: float = float(os.getenv("GATEWAY_TIMEOUT_SECONDS", "10"))

    # MSG91 (primary OTP channel and flow/SMS fallback)
    MSG91_AUTH_KEY: str = os.getenv("MSG91_AUTH_KEY", "")
    MSG91_TEMPLATE_ID: str = os.getenv("MSG91_TEMPLATE_ID", "")
    MSG91_BASE_URL: str = os.getenv("MSG91_BASE_URL", "https://control.msg91.com")

    # Twilio direct SMS
    TWILIO_ACCOUNT_SID: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    TWILIO_AUTH_TOKEN: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    OTP_FROM_NUMBER: str = os.getenv("OTP_FROM_NUMBER", "")

    # Tournaments
    TOURNAMENT_DURATION_HOURS: int = 2
    TOURNAMENT_MAX_PLAYERS_LIMIT: int = 500
    TOURNAMENT_DEFAULT_MAX_PLAYERS: int = 100

    @property
    def database_url(self) -> str:
        # Heroku-style postgres:// URLs; SQLAlchemy expects postgresql://
        if self.DATABASE_URL.startswith("postgres://"):
            return self.DATABASE_URL.replace("postgres://", "postgresql://", 1)
        return self.DATABASE_URL

    @property
    def cors_origins(self) -> list:
        return [origin.strip() for origin in self.FRONTEND_URL.split(",") if origin.strip()]


settings = Settings()


def validate_config():
    """Validate configuration at startup. Raises ValueError if invalid."""
    logger = logging.getLogger(__name__)

    if settings.OTP_LENGTH < 4 or settings.OTP_LENGTH > 10:
        error_msg = f"OTP_LENGTH must be between 4 and 10, got {settings.OTP_LENGTH}"
        logger.error(error_msg)
        raise ValueError(error_msg)

    if settings.ENV == "prod":
        if settings.OTP_PROVIDER == "stub" or settings.OTP_FALLBACK_PROVIDER == "stub":
            error_msg = "Stub OTP provider is not allowed in production"
            logger.error(error_msg)
            raise ValueError(error_msg)

        providers = {settings.OTP_PROVIDER, settings.OTP_FALLBACK_PROVIDER}
        missing = []
        if providers & {"msg91", "msg91_flow"}:
            if not settings.MSG91_AUTH_KEY:
                missing.append("MSG91_AUTH_KEY")
            if not settings.MSG91_TEMPLATE_ID:
                missing.append("MSG91_TEMPLATE_ID")
        if "twilio_sms" in providers:
            if not settings.TWILIO_ACCOUNT_SID:
                missing.append("TWILIO_ACCOUNT_SID")
            if not settings.TWILIO_AUTH_TOKEN:
                missing.append("TWILIO_AUTH_TOKEN")
            if not settings.OTP_FROM_NUMBER:
                missing.append("OTP_FROM_NUMBER")
        if missing:
            error_msg = f"OTP enabled in production but missing required configuration: {', '.join(missing)}"
            logger.error(error_msg)
            raise ValueError(error_msg)

        if settings.database_url.startswith("sqlite"):
            error_msg = (
                "CRITICAL: SQLite database is not supported in production. "
                "Please use PostgreSQL."
            )
            logger.error(error_msg)
            raise ValueError(error_msg)

        if not settings.ADMIN_API_KEY:
            error_msg = "CRITICAL SECURITY ERROR: ADMIN_API_KEY must be set in production"
            logger.error(error_msg)
            raise ValueError(error_msg)

        logger.info("Production safety gates validated")

    logger.info("Configuration validation complete")
    logger.info(f"Environment: {settings.ENV}")
    logger.info(f"OTP Provider: {settings.OTP_PROVIDER} (fallback: {settings.OTP_FALLBACK_PROVIDER})")
    if settings.TWILIO_ACCOUNT_SID:
        logger.info(f"Twilio Account SID: {settings.TWILIO_ACCOUNT_SID[:8]}...")
