from datetime import datetime, timedelta, timezone

from jose import jwt
from passlib.context import CryptContext

from app.core.config import settings

# PBKDF2 avoids bcrypt backend/version issues and the 72-byte bcrypt input limit.
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ALGO = "HS256"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def _encode(subject: str, token_type: str, lifetime: timedelta) -> str:
    exp = datetime.now(timezone.utc) + lifetime
    return jwt.encode({"sub": subject, "type": token_type, "exp": exp}, settings.SECRET_KEY, algorithm=ALGO)


def create_access_token(subject: str, expires_minutes: int | None = None) -> str:
    minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes
    return _encode(subject, "access", timedelta(minutes=minutes))


def create_refresh_token(subject: str, expires_days: int | None = None) -> str:
    days = settings.REFRESH_TOKEN_EXPIRE_DAYS if expires_days is None else expires_days
    return _encode(subject, "refresh", timedelta(days=days))


def decode_token(token: str) -> dict:
    """Raises jose.JWTError (including ExpiredSignatureError) on a bad token."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGO])
