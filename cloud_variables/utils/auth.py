"""
Credential issuer: session tokens (JWT) and long-lived API keys.

Pure computation only, no database access. The signing secret and hashing cost come from
Settings via the constructor so tests can run isolated issuers side by side.
"""
import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import jwt  # PyJWT
from passlib.context import CryptContext

from cloud_variables.core.errors import (
    CredentialConfigurationError,
    TokenExpiredError,
    TokenInvalidError,
    TokenSignatureError,
)

logger = logging.getLogger(__name__)

API_KEY_MARKER = "cv_"
API_KEY_RANDOM_LENGTH = 32
API_KEY_PREFIX_LENGTH = len(API_KEY_MARKER) + 8
_API_KEY_ALPHABET = string.ascii_letters + string.digits


@dataclass
class TokenClaims:
    sub: str
    email: str
    role: str
    tier_id: str
    iat: Optional[int] = None
    exp: Optional[int] = None
    api_key_id: Optional[int] = None  # set when the caller authenticated with an API key

    @property
    def user_id(self) -> int:
        try:
            return int(self.sub)
        except (TypeError, ValueError):
            raise TokenInvalidError("Invalid user ID in token")

    @property
    def tier(self) -> int:
        try:
            return int(self.tier_id)
        except (TypeError, ValueError):
            raise TokenInvalidError("Invalid tier ID in token")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def generate_api_key() -> Tuple[str, str]:
    """
    Return (secret, prefix). The secret is shown to the caller once and only its hash is
    persisted; the prefix is stored in clear as a lookup index.
    """
    random_part = "".join(secrets.choice(_API_KEY_ALPHABET) for _ in range(API_KEY_RANDOM_LENGTH))
    secret = f"{API_KEY_MARKER}{random_part}"
    return secret, extract_key_prefix(secret)


def extract_key_prefix(secret: str) -> str:
    return secret[:API_KEY_PREFIX_LENGTH]


def looks_like_api_key(value: str) -> bool:
    return bool(value) and value.startswith(API_KEY_MARKER)


class CredentialIssuer:
    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expiration_hours: int = 24,
        bcrypt_rounds: int = 12,
    ):
        self._secret = secret
        self.algorithm = algorithm
        self.expiration_hours = expiration_hours
        self.pwd_context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=bcrypt_rounds
        )

    @classmethod
    def from_settings(cls, settings) -> "CredentialIssuer":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expiration_hours=settings.jwt_expiration_hours,
            bcrypt_rounds=settings.bcrypt_rounds,
        )

    # -- session tokens --------------------------------------------------

    def issue_token(
        self,
        user_id: int,
        email: str,
        role: str,
        tier_id: int,
        ttl_hours: Optional[float] = None,
    ) -> str:
        if not self._secret:
            raise CredentialConfigurationError("Token signing secret is not configured")

        now = datetime.now(timezone.utc)
        hours = self.expiration_hours if ttl_hours is None else ttl_hours
        payload = {
            "sub": str(user_id),
            "email": email,
            "role": role,
            "tier_id": str(tier_id),
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(hours=hours)).timestamp()),
        }
        try:
            return jwt.encode(payload, self._secret, algorithm=self.algorithm)
        except (NotImplementedError, TypeError, ValueError, jwt.PyJWTError) as e:
            logger.error("Token signing failed with algorithm %s: %s", self.algorithm, type(e).__name__)
            raise CredentialConfigurationError("Token signing is misconfigured") from e

    def verify_token(self, token: str) -> TokenClaims:
        if not token or token.count(".") != 2:
            raise TokenInvalidError("Invalid token format")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidSignatureError:
            raise TokenSignatureError("Invalid token signature")
        except jwt.PyJWTError:
            raise TokenInvalidError("Invalid token")

        for claim in ("email", "role", "tier_id"):
            if claim not in payload:
                raise TokenInvalidError(f"Token missing {claim} claim")

        return TokenClaims(
            sub=payload["sub"],
            email=payload["email"],
            role=payload["role"],
            tier_id=str(payload["tier_id"]),
            iat=payload["iat"],
            exp=payload["exp"],
        )

    # -- secrets (passwords and API keys) --------------------------------

    def hash_secret(self, secret: str) -> str:
        return self.pwd_context.hash(secret)

    def verify_secret(self, secret: str, hashed: str) -> bool:
        try:
            return self.pwd_context.verify(secret, hashed)
        except (ValueError, TypeError):
            # Unrecognised or corrupt hash
            return False
