"""
Long-lived API keys. The secret is returned once at creation; only its bcrypt hash and a short
clear-text prefix (used to narrow the hash comparisons) are stored.
"""
import logging
from datetime import timedelta
from typing import Any, List, Optional, Tuple

from sqlalchemy.orm import Session

from cloud_variables.core.errors import AuthenticationError, NotFoundError
from cloud_variables.core.quota import enforce_api_key_limit
from cloud_variables.db.base import utcnow
from cloud_variables.models.api_key import ApiKey
from cloud_variables.models.tier import Tier
from cloud_variables.models.user import User
from cloud_variables.utils.auth import (
    CredentialIssuer,
    TokenClaims,
    extract_key_prefix,
    generate_api_key,
    looks_like_api_key,
)
from cloud_variables.utils.validation import validate_api_key_name

logger = logging.getLogger(__name__)

_INVALID_KEY = "Invalid API key"


class ApiKeyService:
    def __init__(self, db: Session, issuer: CredentialIssuer):
        self.db = db
        self.issuer = issuer

    def count_active(self, user_id: int) -> int:
        return self.db.query(ApiKey).filter(
            ApiKey.user_id == user_id,
            ApiKey.is_active.is_(True),
        ).count()

    def create(
        self,
        user_id: int,
        tier: Tier,
        name: str,
        expires_in_days: Optional[int] = None,
        permissions: Optional[Any] = None,
    ) -> Tuple[ApiKey, str]:
        """
        Create a key for the user if the tier allows another active key.

        Returns:
            (api_key, secret) - the secret is not recoverable afterwards
        """
        validate_api_key_name(name)
        enforce_api_key_limit(self.count_active(user_id), tier)

        secret, prefix = generate_api_key()
        expires_at = utcnow() + timedelta(days=expires_in_days) if expires_in_days else None
        api_key = ApiKey(
            user_id=user_id,
            name=name.strip(),
            key_hash=self.issuer.hash_secret(secret),
            prefix=prefix,
            expires_at=expires_at,
            permissions=permissions,
        )
        self.db.add(api_key)
        self.db.commit()
        self.db.refresh(api_key)
        logger.info("Created API key id=%s for user id=%s", api_key.id, user_id)
        return api_key, secret

    def list(self, user_id: int) -> List[ApiKey]:
        return (
            self.db.query(ApiKey)
            .filter(ApiKey.user_id == user_id)
            .order_by(ApiKey.created_at.desc(), ApiKey.id.desc())
            .all()
        )

    def _get_owned(self, key_id: int, user_id: int) -> ApiKey:
        api_key = self.db.query(ApiKey).filter(
            ApiKey.id == key_id,
            ApiKey.user_id == user_id,
        ).first()
        if not api_key:
            raise NotFoundError("API key not found")
        return api_key

    def revoke(self, key_id: int, user_id: int) -> ApiKey:
        api_key = self._get_owned(key_id, user_id)
        api_key.is_active = False
        self.db.commit()
        self.db.refresh(api_key)
        logger.info("Revoked API key id=%s", key_id)
        return api_key

    def delete(self, key_id: int, user_id: int) -> None:
        api_key = self._get_owned(key_id, user_id)
        self.db.delete(api_key)
        self.db.commit()

    def authenticate(self, secret: str) -> Tuple[ApiKey, User]:
        """Resolve a presented secret to its key and owner, recording the use."""
        if not looks_like_api_key(secret):
            raise AuthenticationError(_INVALID_KEY)

        candidates = self.db.query(ApiKey).filter(
            ApiKey.prefix == extract_key_prefix(secret)
        ).all()
        api_key = next(
            (c for c in candidates if self.issuer.verify_secret(secret, c.key_hash)),
            None,
        )
        if api_key is None:
            raise AuthenticationError(_INVALID_KEY)
        if not api_key.is_valid():
            raise AuthenticationError("API key is revoked or expired")

        user = self.db.query(User).filter(User.id == api_key.user_id).first()
        if not user or not user.is_active:
            raise AuthenticationError("Account not found or disabled")

        api_key.last_used_at = utcnow()
        self.db.commit()
        return api_key, user

    def claims_for(self, secret: str) -> TokenClaims:
        """Authenticate an API key and express the caller the same way a session token would."""
        api_key, user = self.authenticate(secret)
        return TokenClaims(
            sub=str(user.id),
            email=user.email,
            role=user.role,
            tier_id=str(user.tier_id),
            api_key_id=api_key.id,
        )
