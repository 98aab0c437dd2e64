from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from jose import JWTError, jwt

from ..core.constants import DEFAULT_TOKEN_DAYS
from ..core.enums import Role
from ..core.exceptions import AuthenticationError


@dataclass(frozen=True)
class Identity:
    """Decoded bearer token, attached to ``flask.g`` for the rest of the request."""

    user_id: str
    role: Role


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Signs and verifies stateless bearer tokens.

    There is no revocation: a token stays valid until ``exp`` whatever happens to the account.
    """

    def __init__(
        self,
        *,
        secret: str,
        algorithm: str = "HS256",
        expires_days: int = DEFAULT_TOKEN_DAYS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._expires = timedelta(days=expires_days)
        self._clock = clock or _utcnow

    def issue(self, user_id: str, role: Role) -> str:
        now = self._clock()
        claims = {
            "sub": user_id,
            "role": role.value,
            "iat": int(now.timestamp()),
            "exp": int((now + self._expires).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> Identity:
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as e:
            raise AuthenticationError(str(e) or "Token is not valid") from e

        user_id = claims.get("sub")
        if not user_id:
            raise AuthenticationError("Token has no subject")
        try:
            role = Role(claims.get("role"))
        except ValueError:
            raise AuthenticationError("Token carries an unknown role")
        return Identity(user_id=str(user_id), role=role)
