import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings
from app.core.errors import AuthenticationError

# PBKDF2 avoids bcrypt backend/version issues and the 72-byte bcrypt input limit.
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ALGO = "HS256"
BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Credential:
    """Decoded access token; every authorization decision is made from this."""

    user_id: str
    email: str
    role: str
    exp: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: str, email: str, role: str, expires_minutes: int | None = None) -> str:
    if expires_minutes is None:
        expires_minutes = settings.ACCESS_TOKEN_EXPIRE_MINUTES
    exp = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload = {"sub": user_id, "email": email, "role": role, "type": "access", "exp": exp}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGO)


def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGO])


def decode_credential(token: str) -> Credential:
    """Decode an access token; fails on bad signature, malformed payload or expiry."""
    try:
        payload = decode_token(token)
    except JWTError:
        raise AuthenticationError("Invalid token")
    if payload.get("type") != "access" or not payload.get("sub"):
        raise AuthenticationError("Invalid token")
    return Credential(
        user_id=str(payload["sub"]),
        email=(payload.get("email") or "").lower(),
        role=payload.get("role") or "user",
        exp=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
    )


def extract_bearer(header_value: str | None) -> str | None:
    if not header_value or not header_value.startswith(BEARER_PREFIX):
        return None
    return header_value[len(BEARER_PREFIX):].strip() or None


def create_reset_token(expires_minutes: int | None = None) -> str:
    if expires_minutes is None:
        expires_minutes = settings.RESET_TOKEN_EXPIRE_MINUTES
    exp = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload = {"type": "password-reset", "jti": uuid.uuid4().hex, "exp": exp}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGO)


def verify_reset_token(token: str) -> bool:
    try:
        return decode_token(token).get("type") == "password-reset"
    except JWTError:
        return False
