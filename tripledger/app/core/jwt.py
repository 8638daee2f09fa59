"""
JWT token utilities for the identity provider boundary.

Identity tokens carry a stable opaque identity id (``sub``) and the
administrator capability (``is_admin``). The same signing key is used for
time-limited blob download tokens.
"""

from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from tripledger.app.core.config import settings


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Data payload to encode in the token (should include: sub, is_admin)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Example payload:
        {
            "sub": "b7f0c6f2-identity",
            "is_admin": false,
            "exp": 1234567890
        }
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)

    return encoded_jwt


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token string to decode

    Returns:
        Decoded token payload if valid (includes: sub, is_admin, exp), None otherwise
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        return payload
    except JWTError:
        return None


BLOB_TOKEN_SCOPE = "blob"


def create_blob_token(path: str, expires_in: int) -> str:
    """Signed token granting download access to one blob path for ``expires_in`` seconds."""
    return create_access_token(
        {"scope": BLOB_TOKEN_SCOPE, "path": path},
        expires_delta=timedelta(seconds=expires_in)
    )


def decode_blob_token(token: str) -> Optional[str]:
    """Return the blob path a token grants access to, or None if invalid, expired or not a blob token."""
    payload = decode_access_token(token)
    if payload is None or payload.get("scope") != BLOB_TOKEN_SCOPE:
        return None
    return payload.get("path")
