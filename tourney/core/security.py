import hmac
import secrets

from passlib.context import CryptContext

# PBKDF2-SHA256 for one-time codes (no bcrypt 72-byte limit, no native deps)
otp_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_otp(code: str) -> str:
    return otp_context.hash(code)


def verify_otp_hash(code: str, hashed: str) -> bool:
    return otp_context.verify(code, hashed)


def generate_numeric_code(length: int) -> str:
    """Uniformly random zero-padded numeric code of exactly ``length`` digits."""
    return str(secrets.randbelow(10**length)).zfill(length)


def constant_time_equals(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))
