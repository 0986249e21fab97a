"""
Request authentication. A caller presents either a session token
(Authorization: Bearer <jwt>) or an API key (X-API-Key: cv_..., or as the Bearer value).
"""
import logging
from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from cloud_variables.core.errors import AuthenticationError, AuthorizationError
from cloud_variables.db.session import get_db
from cloud_variables.services.api_key_service import ApiKeyService
from cloud_variables.services.user_service import UserService
from cloud_variables.services.tier_service import TierService
from cloud_variables.utils.auth import CredentialIssuer, TokenClaims, looks_like_api_key

logger = logging.getLogger(__name__)


def get_issuer(request: Request) -> CredentialIssuer:
    return request.app.state.issuer


def get_current_claims(
    authorization: Optional[str] = Header(None),
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
    db: Session = Depends(get_db),
    issuer: CredentialIssuer = Depends(get_issuer),
) -> TokenClaims:
    if x_api_key:
        return ApiKeyService(db, issuer).claims_for(x_api_key.strip())

    if not authorization:
        raise AuthenticationError("Missing authorization header")

    if not authorization.startswith("Bearer "):
        raise AuthenticationError("Invalid header format. Expected 'Bearer <token>'")

    token = authorization[len("Bearer "):].strip()
    if not token:
        raise AuthenticationError("Missing token")

    if looks_like_api_key(token):
        return ApiKeyService(db, issuer).claims_for(token)

    return issuer.verify_token(token)


def require_admin(
    claims: TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
    issuer: CredentialIssuer = Depends(get_issuer),
) -> TokenClaims:
    """
    The token's role is only a hint; admin rights are re-read from the account so a demoted or
    disabled admin loses access before their token expires.
    """
    if not claims.is_admin:
        raise AuthorizationError("Admin access required")
    user = UserService(db, issuer, TierService(db)).get_active(claims.user_id)
    if not user.is_admin:
        logger.warning("Stale admin token presented for user id=%s", user.id)
        raise AuthorizationError("Admin access required")
    return claims
