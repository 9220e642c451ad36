from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from ..config import settings


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify a JWT token"""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        return payload
    except JWTError:
        return None


def verify_access_token(token: str) -> Optional[dict]:
    """
    Verify a bearer token issued by the identity provider.
    Returns the payload when it is valid and names a subject.
    """
    payload = decode_token(token)
    if payload and payload.get("sub"):
        return payload
    return None


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None, **claims) -> str:
    """
    Sign a token the way the identity provider does.
    Used by tests and local tooling; the API never issues tokens.
    """
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=30))
    to_encode = {"sub": subject, "exp": expire, **claims}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)
