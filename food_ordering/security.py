"""Password hashing and signed session tokens."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from .errors import Unauthorized

logger = logging.getLogger("food-ordering.security")

ALGORITHM = "HS256"


@dataclass(frozen=True)
class Principal:
    id: int
    role: str
    email: str
    verified: bool = False


class Identity:
    """Hashes passwords and issues/validates tokens with one shared secret.

    The secret comes from ``Settings`` at construction and is never rotated
    while the process runs.
    """

    def __init__(
        self,
        secret: str,
        token_ttl: timedelta = timedelta(days=90),
        hasher: Optional[PasswordHasher] = None,
    ):
        if not secret:
            raise ValueError("a signing secret is required")
        self._secret = secret
        self.token_ttl = token_ttl
        self._hasher = hasher or PasswordHasher()

    def hash_password(self, plain: str) -> str:
        return self._hasher.hash(plain)

    def verify_password(self, plain: str, hashed: str) -> bool:
        try:
            return self._hasher.verify(hashed, plain)
        except (VerificationError, InvalidHashError):
            return False

    def issue_token(self, principal: Principal) -> str:
        now = datetime.now(timezone.utc)
        claims: dict[str, Any] = {
            "sub": str(principal.id),
            "role": principal.role,
            "email": principal.email,
            "verified": principal.verified,
            "iat": now,
            "exp": now + self.token_ttl,
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify_token(self, token: str) -> Principal:
        try:
            claims = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise Unauthorized("Token expired")
        except jwt.InvalidTokenError as e:
            logger.info(f"Rejected token: {e}")
            raise Unauthorized("Invalid token")

        try:
            return Principal(
                id=int(claims["sub"]),
                role=claims["role"],
                email=claims.get("email", ""),
                verified=bool(claims.get("verified", False)),
            )
        except (KeyError, ValueError, TypeError):
            raise Unauthorized("Invalid token claims")
