from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
import asyncio
import re
import secrets
from .config import settings
import structlog

logger = structlog.get_logger()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CredentialHasher:
    """One-way password hashing with a fixed bcrypt cost factor."""

    def __init__(self, rounds: Optional[int] = None):
        self.rounds = rounds or settings.BCRYPT_ROUNDS
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=self.rounds,
        )

    def hash(self, plaintext: str) -> str:
        """Generate a salted password hash"""
        return self._context.hash(plaintext)

    def verify(self, plaintext: str, digest: str) -> bool:
        """Verify a password against its hash (constant-time comparison)"""
        try:
            return self._context.verify(plaintext, digest)
        except (ValueError, TypeError):
            # Malformed or foreign digest
            return False

    async def _run(self, func, *args):
        """Run a bcrypt call in the default thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    async def hash_async(self, plaintext: str) -> str:
        return await self._run(self.hash, plaintext)

    async def verify_async(self, plaintext: str, digest: str) -> bool:
        return await self._run(self.verify, plaintext, digest)


@dataclass(frozen=True)
class IssuedToken:
    value: str
    expires_at: datetime


class TokenIssuer:
    """Generates opaque, unguessable single-use tokens with an absolute expiry."""

    def __init__(self, ttl: Optional[timedelta] = None, nbytes: Optional[int] = None):
        self.ttl = ttl or timedelta(hours=settings.TOKEN_EXPIRY_HOURS)
        self.nbytes = nbytes or settings.TOKEN_BYTES

    def issue(self, now: Optional[datetime] = None) -> IssuedToken:
        now = now or utcnow()
        # hex encoding keeps the length fixed at 2 * nbytes
        return IssuedToken(value=secrets.token_hex(self.nbytes), expires_at=now + self.ttl)


def validate_password_strength(password: str) -> tuple[bool, list[str]]:
    """Validate password meets security requirements"""
    errors = []

    if len(password) < settings.PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters")

    if settings.PASSWORD_REQUIRE_UPPERCASE and not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")

    if settings.PASSWORD_REQUIRE_LOWERCASE and not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")

    if settings.PASSWORD_REQUIRE_NUMBERS and not re.search(r"\d", password):
        errors.append("Password must contain at least one number")

    return len(errors) == 0, errors


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token for an authenticated user id"""
    now = utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": subject,
        "exp": expire,
        "iat": now,
        "type": "access",
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and validate JWT access token, None when invalid or expired"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != "access" or not payload.get("sub"):
        return None
    return payload
