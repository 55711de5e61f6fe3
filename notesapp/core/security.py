"""Security utilities: password hashing and session tokens."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache

from jose import JWTError, jwt
from passlib.context import CryptContext

from notesapp.core.config import get_settings
from notesapp.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

# ── Password hashing (Argon2) ────────────────────────────────

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


# ── Token expiry parsing ─────────────────────────────────────

DEFAULT_EXPIRES_IN = "7d"

_DURATION_RE = re.compile(r"^(\d+)\s*([smhdw]?)$", re.IGNORECASE)
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400, "w": 604800}


def parse_expires_in(value: str | None) -> timedelta:
    """Turn ``"7d"``, ``"12h"``, ``"30m"``, ``"45s"`` or ``"3600"`` into a timedelta.

    Blank or whitespace-only values fall back to ``DEFAULT_EXPIRES_IN``.
    Anything else that does not parse raises ``ConfigurationError``.
    """
    if value is None or not value.strip():
        value = DEFAULT_EXPIRES_IN
    match = _DURATION_RE.match(value.strip())
    if match is None:
        raise ConfigurationError(f"JWT_EXPIRES_IN is not a valid duration: {value!r}")
    amount, unit = match.groups()
    seconds = int(amount) * _UNIT_SECONDS[unit.lower()]
    if seconds <= 0:
        raise ConfigurationError("JWT_EXPIRES_IN must be a positive duration")
    return timedelta(seconds=seconds)


# ── Session claims / JWT ─────────────────────────────────────

@dataclass(frozen=True)
class SessionClaims:
    """Identity carried inside a session token."""

    subject: str
    tenant_id: str | None
    role: str
    plan: str


class TokenService:
    """Signs and verifies HS256 session tokens."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_in: str | None = DEFAULT_EXPIRES_IN,
    ) -> None:
        if not secret or not secret.strip():
            raise ConfigurationError("JWT_SECRET_KEY is not configured")
        self._secret = secret
        self._algorithm = algorithm
        self.lifetime = parse_expires_in(expires_in)

    def sign(self, claims: SessionClaims, expires_delta: timedelta | None = None) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": claims.subject,
            "tid": claims.tenant_id,
            "role": claims.role,
            "plan": claims.plan,
            "iat": now,
            "exp": now + (expires_delta or self.lifetime),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> SessionClaims | None:
        """Return the claims of a valid, unexpired token, else ``None``."""
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as exc:
            logger.debug("Rejected session token: %s", exc)
            return None

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            return None
        tenant_id = payload.get("tid")
        return SessionClaims(
            subject=subject,
            tenant_id=tenant_id if isinstance(tenant_id, str) and tenant_id else None,
            role=str(payload.get("role") or "member"),
            plan=str(payload.get("plan") or "free"),
        )


@lru_cache
def get_token_service() -> TokenService:
    settings = get_settings()
    return TokenService(
        secret=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expires_in=settings.jwt_expires_in,
    )
