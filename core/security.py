"""
Password hashing and session token utilities.

Passwords are stored as salted bcrypt hashes. Session tokens are HS256 JWTs
that carry only the subject id and timing claims; role and permissions are
always re-read from the database when the token is presented.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, TypedDict

import bcrypt
import jwt

# bcrypt only looks at the first 72 bytes of the secret
BCRYPT_MAX_BYTES = 72

ACCESS_TOKEN_TYPE = "access"


class JWTPayload(TypedDict, total=False):
    """Claims carried by an access token."""
    sub: str
    iat: int
    exp: int
    jti: str
    type: str


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Hash a password with a fresh salt.

    Args:
        password: Plaintext password
        rounds: bcrypt cost factor

    Returns:
        bcrypt hash string (``$2b$...``)
    """
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    """
    Compare a plaintext password against a stored bcrypt hash.

    The comparison inside ``bcrypt.checkpw`` is constant time. A malformed
    stored hash counts as a mismatch.
    """
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            _password_bytes(password), hashed_password.encode("utf-8")
        )
    except ValueError:
        return False


def create_access_token(
    subject_id: int,
    secret_key: str,
    algorithm: str = "HS256",
    expires_delta: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Create a signed access token for a user.

    Args:
        subject_id: User ID embedded as the ``sub`` claim
        secret_key: Signing secret
        algorithm: JWT signing algorithm
        expires_delta: Token lifetime (defaults to 24 hours)
        now: Issue time, mainly for tests

    Returns:
        Encoded JWT
    """
    issued_at = now or datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(hours=24)

    payload: JWTPayload = {
        "sub": str(subject_id),
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + expires_delta).timestamp()),
        "jti": uuid.uuid4().hex,
        "type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def verify_jwt_token(
    token: str,
    secret_key: str,
    algorithm: str = "HS256",
) -> JWTPayload:
    """
    Verify signature and expiry of a token and return its claims.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired
        jwt.InvalidTokenError: For any other verification failure
    """
    payload = jwt.decode(
        token,
        secret_key,
        algorithms=[algorithm],
        options={"require": ["sub", "exp", "iat"]},
    )
    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise jwt.InvalidTokenError("Not an access token")
    return payload


def token_expiry(payload: JWTPayload) -> datetime:
    """Return the expiry claim as an aware datetime."""
    return datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
