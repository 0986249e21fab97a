"""Per-request service wiring over the request's database session and the app's singletons."""
import logging

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from cloud_variables.core.quota import enforce_rate_limit
from cloud_variables.db.session import get_db
from cloud_variables.dependencies.auth import get_current_claims, get_issuer
from cloud_variables.services.api_key_service import ApiKeyService
from cloud_variables.services.promotion_service import PromotionService
from cloud_variables.services.tier_service import TierService
from cloud_variables.services.usage_tracker import UsageTracker
from cloud_variables.services.user_service import UserService
from cloud_variables.services.variable_ledger import VariableLedger
from cloud_variables.services.variable_store import VariableStore
from cloud_variables.storage.base import BlobStore
from cloud_variables.utils.auth import CredentialIssuer, TokenClaims

logger = logging.getLogger(__name__)


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blob_store


def get_tier_service(request: Request, db: Session = Depends(get_db)) -> TierService:
    return TierService(db, request.app.state.settings.default_tier_name)


def get_user_service(
    db: Session = Depends(get_db),
    issuer: CredentialIssuer = Depends(get_issuer),
    tiers: TierService = Depends(get_tier_service),
) -> UserService:
    return UserService(db, issuer, tiers)


def get_api_key_service(
    db: Session = Depends(get_db),
    issuer: CredentialIssuer = Depends(get_issuer),
) -> ApiKeyService:
    return ApiKeyService(db, issuer)


def get_promotion_service(
    db: Session = Depends(get_db),
    users: UserService = Depends(get_user_service),
    tiers: TierService = Depends(get_tier_service),
) -> PromotionService:
    return PromotionService(db, users, tiers)


def get_variable_store(
    db: Session = Depends(get_db),
    tiers: TierService = Depends(get_tier_service),
    blob_store: BlobStore = Depends(get_blob_store),
) -> VariableStore:
    return VariableStore(VariableLedger(db), tiers, blob_store, UsageTracker(db))


def enforce_daily_request_limit(
    claims: TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
    tiers: TierService = Depends(get_tier_service),
) -> TokenClaims:
    """Count this request against the caller's daily limit, rejecting it once the limit is hit."""
    tracker = UsageTracker(db)
    tier = tiers.get(claims.tier)
    enforce_rate_limit(tracker.requests_today(claims.user_id), tier)
    try:
        tracker.record(claims.user_id, requests_count=1)
    except Exception as e:
        db.rollback()
        logger.warning("Request not counted for user id=%s: %s", claims.user_id, e)
    return claims
