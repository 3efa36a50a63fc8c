from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt

from traechan.settings import Settings

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw]?)\s*$", re.IGNORECASE)
_DURATION_UNITS = {
    "": "seconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}


def parse_duration(raw: str) -> timedelta:
    """Parse ``"30d"``-style durations; a bare number means seconds."""
    match = _DURATION_RE.match(raw)
    if match is None:
        raise ValueError(f"Invalid duration: {raw!r}")
    amount, unit = match.groups()
    duration = timedelta(**{_DURATION_UNITS[unit.lower()]: int(amount)})
    if duration <= timedelta(0):
        raise ValueError(f"Duration must be positive: {raw!r}")
    return duration


@dataclass(frozen=True)
class TokenPayload:
    user_id: int
    issued_at: datetime
    expires_at: datetime


class TokenSigner:
    def __init__(self, *, secret: str, expires_in: timedelta) -> None:
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._expires_in = expires_in

    @classmethod
    def from_settings(cls, settings: Settings) -> TokenSigner:
        return cls(
            secret=settings.jwt_secret.get_secret_value(),
            expires_in=parse_duration(settings.jwt_expiration),
        )

    def generate_token(self, user_id: int, *, now: datetime | None = None) -> str:
        issued_at = now if now is not None else datetime.now(UTC)
        payload = {
            "user_id": user_id,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._expires_in).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

    def verify_token(self, token: str) -> TokenPayload | None:
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
        except jwt.PyJWTError as exc:
            logger.debug("session token rejected: %s", type(exc).__name__)
            return None

        user_id = claims.get("user_id")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            logger.debug("session token rejected: missing user_id claim")
            return None

        return TokenPayload(
            user_id=user_id,
            issued_at=datetime.fromtimestamp(claims["iat"], UTC),
            expires_at=datetime.fromtimestamp(claims["exp"], UTC),
        )
