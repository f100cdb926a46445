"""
Security utilities - password hashing, JWT tokens

Tokens carry the account id as `sub` (always a string per the JWT spec)
plus email and role. Expiry is enforced by python-jose on decode.
"""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from justchiro.core.config import Settings, settings as default_settings
from justchiro.core.exceptions import ExpiredCredential, InvalidCredential


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8")
        )
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_password_hash(password: str, rounds: Optional[int] = None) -> str:
    """Generate password hash"""
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=rounds or default_settings.BCRYPT_ROUNDS)
    ).decode("utf-8")


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None,
    settings: Settings = default_settings,
) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({
        "exp": expire,
        "type": "access",
        "jti": str(uuid.uuid4()),
        "iat": now,
    })
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Settings = default_settings) -> dict:
    """
    Decode and validate a JWT access token.

    Raises:
        ExpiredCredential: signature valid but past `exp`
        InvalidCredential: malformed, unsigned, wrong key or wrong token type
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"verify_sub": False},
        )
    except ExpiredSignatureError as e:
        raise ExpiredCredential() from e
    except JWTError as e:
        raise InvalidCredential() from e

    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidCredential()
    return payload
