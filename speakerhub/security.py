"""
SpeakerHub Backend — Password, Token and One-Time Code Primitives
===================================================================

What:  bcrypt hashing for passwords and one-time codes, HS256 JWT access
       tokens (python-jose), and one-time code generation.
Who:   AuthService (signup, verification, login) and the access-control layer
       (token validation).

Token claims:
    sub    identity id
    email  identity email at issue time
    role   Role value at issue time
    exp    expiry (UTC)
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from speakerhub.config import settings
from speakerhub.exceptions import AuthenticationError
from speakerhub.models.profile import Role

logger = logging.getLogger(__name__)

# bcrypt only considers the first 72 bytes; newer releases refuse longer input.
_BCRYPT_MAX_BYTES = 72


def _secret_bytes(value: str) -> bytes:
    return value.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_secret(value: str, rounds: Optional[int] = None) -> str:
    """bcrypt-hash a password or one-time code."""
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(_secret_bytes(value), salt).decode("utf-8")


def verify_secret(value: str, hashed: str) -> bool:
    """Constant-time check of `value` against a bcrypt hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(_secret_bytes(value), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored hash is not a valid bcrypt hash")
        return False


def generate_otp(length: Optional[int] = None) -> str:
    """Random numeric one-time code, leading zeros allowed."""
    n = length or settings.otp_length
    return "".join(str(secrets.randbelow(10)) for _ in range(n))


def is_well_formed_otp(code: str, length: Optional[int] = None) -> bool:
    n = length or settings.otp_length
    return len(code) == n and code.isascii() and code.isdigit()


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str
    role: Role
    expires_at: datetime


def create_access_token(
    user_id: str,
    email: str,
    role: Role,
    now: Optional[datetime] = None,
) -> Tuple[str, datetime]:
    """
    Issue a signed access token.

    Returns:
        (token, expires_at)
    """
    issued_at = now or datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(hours=settings.access_token_ttl_hours)
    claims = {
        "sub": user_id,
        "email": email,
        "role": role.value,
        "exp": expires_at,
    }
    token = jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, expires_at


def decode_access_token(token: str) -> TokenClaims:
    """
    Verify signature and expiry and return the claims.

    Raises:
        AuthenticationError: expired, tampered, or structurally invalid token.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise AuthenticationError("Token has expired. Please log in again.")
    except JWTError:
        raise AuthenticationError("Invalid access token.")

    user_id = payload.get("sub")
    email = payload.get("email")
    try:
        role = Role(payload.get("role"))
    except ValueError:
        raise AuthenticationError("Invalid access token.")
    if not user_id or not email:
        raise AuthenticationError("Invalid access token.")

    return TokenClaims(
        user_id=user_id,
        email=email,
        role=role,
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
