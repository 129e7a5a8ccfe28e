import hashlib
import hmac
import re
import secrets
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from barbershop.settings import Settings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
PBKDF2_ITERATIONS = 100_000


class TokenError(Exception):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes for values written as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt.encode("utf-8"),
        PBKDF2_ITERATIONS,
    ).hex()
    return f"{salt}${digest}"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if "$" not in hashed_password:
        return False

    salt, digest = hashed_password.split("$", 1)
    candidate = hashlib.pbkdf2_hmac(
        "sha256",
        plain_password.encode("utf-8"),
        salt.encode("utf-8"),
        PBKDF2_ITERATIONS,
    ).hex()
    return hmac.compare_digest(candidate, digest)


def validate_password_policy(password: str, min_length: int) -> tuple[bool, str]:
    if len(password) < min_length:
        return False, f"Password must be at least {min_length} characters."
    if not re.search(r"[A-Z]", password):
        return False, "Password must include at least one uppercase letter."
    if not re.search(r"[a-z]", password):
        return False, "Password must include at least one lowercase letter."
    if not re.search(r"\d", password):
        return False, "Password must include at least one number."
    if not re.search(r"[^A-Za-z0-9]", password):
        return False, "Password must include at least one special character."
    return True, ""


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _encode(claims: dict, secret: str, algorithm: str, expires_at: datetime) -> str:
    to_encode = claims.copy()
    to_encode["exp"] = expires_at
    to_encode["iat"] = utcnow()
    # Two tokens for the same account issued within one second must differ.
    to_encode["jti"] = secrets.token_hex(8)
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def _identity_claims(user_id: int, email: str, role: str, token_type: str) -> dict:
    return {"sub": str(user_id), "email": email, "role": role, "type": token_type}


def create_access_token(settings: Settings, user_id: int, email: str, role: str) -> str:
    expires_at = utcnow() + timedelta(minutes=settings.access_token_ttl_minutes)
    return _encode(
        _identity_claims(user_id, email, role, ACCESS_TOKEN_TYPE),
        settings.jwt_secret,
        settings.jwt_algorithm,
        expires_at,
    )


def create_refresh_token(settings: Settings, user_id: int, email: str, role: str) -> tuple[str, datetime]:
    expires_at = utcnow() + timedelta(days=settings.refresh_token_ttl_days)
    token = _encode(
        _identity_claims(user_id, email, role, REFRESH_TOKEN_TYPE),
        settings.jwt_refresh_secret,
        settings.jwt_algorithm,
        expires_at,
    )
    return token, expires_at


def _decode(token: str, secret: str, algorithm: str, expected_type: str) -> dict:
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError as exc:
        raise TokenError(str(exc)) from exc

    if payload.get("type") != expected_type:
        raise TokenError("Unexpected token type")
    try:
        payload["user_id"] = int(payload.get("sub"))
    except (TypeError, ValueError) as exc:
        raise TokenError("Token subject is not an account id") from exc
    return payload


def decode_access_token(settings: Settings, token: str) -> dict:
    return _decode(token, settings.jwt_secret, settings.jwt_algorithm, ACCESS_TOKEN_TYPE)


def decode_refresh_token(settings: Settings, token: str) -> dict:
    return _decode(token, settings.jwt_refresh_secret, settings.jwt_algorithm, REFRESH_TOKEN_TYPE)
