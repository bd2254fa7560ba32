from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from ...domain.errors import CredentialError, TokenExpired, TokenInvalid

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72


class Audience(str, Enum):
    USER = "user"
    ADMIN = "admin"


class CredentialService:
    """Password hashing and audience-scoped session tokens."""

    def __init__(
        self,
        user_secret: str,
        admin_secret: str,
        *,
        user_token_exp_minutes: int = 60 * 24 * 7,
        admin_token_exp_minutes: int = 60 * 24 * 7,
        bcrypt_rounds: int = 10,
        algorithm: str = "HS256",
    ) -> None:
        if not user_secret or not admin_secret:
            raise RuntimeError("USER_TOKEN_SECRET and ADMIN_TOKEN_SECRET must be configured.")
        if user_secret == admin_secret:
            raise RuntimeError("USER_TOKEN_SECRET and ADMIN_TOKEN_SECRET must be different.")
        for name, secret in (("USER_TOKEN_SECRET", user_secret), ("ADMIN_TOKEN_SECRET", admin_secret)):
            if secret.startswith("change-me"):
                logger.warning("%s is using the default value. Configure a secure secret in production.", name)
        if not 4 <= bcrypt_rounds <= 31:
            raise RuntimeError("BCRYPT_ROUNDS must be between 4 and 31.")
        self._secrets: Dict[Audience, str] = {Audience.USER: user_secret, Audience.ADMIN: admin_secret}
        self._ttl: Dict[Audience, timedelta] = {
            Audience.USER: timedelta(minutes=user_token_exp_minutes),
            Audience.ADMIN: timedelta(minutes=admin_token_exp_minutes),
        }
        self._rounds = bcrypt_rounds
        self._algorithm = algorithm

    # Passwords ----------------------------------------------------------
    def hash_password(self, plaintext: str) -> str:
        encoded = plaintext.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise CredentialError("Password is too long to hash.")
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify_password(self, plaintext: str, password_hash: str) -> bool:
        encoded = plaintext.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
        except ValueError as exc:
            raise CredentialError("Stored password hash is malformed.") from exc

    # Tokens -------------------------------------------------------------
    def issue_token(
        self,
        subject_id: int,
        audience: Audience,
        ttl: Optional[timedelta] = None,
    ) -> str:
        audience = Audience(audience)
        now = datetime.now(tz=timezone.utc)
        expire = now + (ttl if ttl is not None else self._ttl[audience])
        payload = {
            "sub": str(subject_id),
            "aud": audience.value,
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
        }
        return jwt.encode(payload, self._secrets[audience], algorithm=self._algorithm)

    def verify_token(self, token: str, audience: Audience) -> int:
        audience = Audience(audience)
        try:
            payload = jwt.decode(
                token,
                self._secrets[audience],
                algorithms=[self._algorithm],
                audience=audience.value,
            )
        except ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except JWTError as exc:
            raise TokenInvalid() from exc
        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError) as exc:
            raise TokenInvalid() from exc
