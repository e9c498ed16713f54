"""
JWT authentication and password utilities
"""

from datetime import timedelta
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError
from typing import Dict, List, Optional, Tuple
import random
import secrets
import string
import uuid

from mandi_saas.core.clock import utcnow
from mandi_saas.core.config import get_settings
from mandi_saas.schemas.token import TokenPayload

settings = get_settings()
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MIN_PASSWORD_LENGTH = 6
RANDOM_PASSWORD_CHARS = string.ascii_letters + string.digits + "@#$"


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    role: str,
    tenant_id: Optional[uuid.UUID] = None,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT access token with user claims"""
    now = utcnow()
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "tenant_id": str(tenant_id) if tenant_id else None,
        "exp": expire,
        "iat": now,
    }

    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict]:
    """Decode and validate JWT token (signature and expiry)"""
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


def verify_token(token: str) -> Optional[TokenPayload]:
    """Verify token and return its payload if valid"""
    payload = decode_access_token(token)
    if payload is None:
        return None
    try:
        return TokenPayload(**payload)
    except ValidationError:
        return None


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def generate_reset_token() -> str:
    return secrets.token_urlsafe(16)


def validate_password(password: str) -> Tuple[bool, List[str]]:
    """Check password strength rules"""
    errors = []

    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if not any(c.isupper() for c in password):
        errors.append("Password must contain at least one uppercase letter")
    if not any(c.islower() for c in password):
        errors.append("Password must contain at least one lowercase letter")
    if not any(c.isdigit() for c in password):
        errors.append("Password must contain at least one number")

    return len(errors) == 0, errors


def generate_random_password(length: int = 10) -> str:
    """Random password that always passes validate_password"""
    if length < MIN_PASSWORD_LENGTH:
        raise ValueError(f"length must be at least {MIN_PASSWORD_LENGTH}")

    rng = random.SystemRandom()
    chars = [
        rng.choice(string.ascii_uppercase),
        rng.choice(string.ascii_lowercase),
        rng.choice(string.digits),
    ]
    chars += [rng.choice(RANDOM_PASSWORD_CHARS) for _ in range(length - 3)]
    rng.shuffle(chars)
    return "".join(chars)
