from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from cloud_variables.db.session import get_db
from cloud_variables.dependencies.auth import get_current_claims
from cloud_variables.dependencies.services import (
    get_api_key_service,
    get_tier_service,
    get_user_service,
)
from cloud_variables.schemas.auth import UserResponse
from cloud_variables.schemas.user import PasswordChange, ProfileResponse, TierLimitsResponse, UsageResponse
from cloud_variables.services.api_key_service import ApiKeyService
from cloud_variables.services.tier_service import TierService
from cloud_variables.services.usage_tracker import COUNTERS, UsageTracker, today
from cloud_variables.services.user_service import UserService
from cloud_variables.services.variable_ledger import VariableLedger
from cloud_variables.utils.auth import TokenClaims

router = APIRouter()


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    claims: TokenClaims = Depends(get_current_claims),
    users: UserService = Depends(get_user_service),
    tiers: TierService = Depends(get_tier_service),
    api_keys: ApiKeyService = Depends(get_api_key_service),
    db: Session = Depends(get_db),
):
    """Current user profile with tier name and resource counts"""
    user = users.get(claims.user_id)
    tier = tiers.get(user.tier_id)
    return ProfileResponse(
        user=UserResponse.model_validate(user),
        tier_name=tier.name,
        variable_count=VariableLedger(db).count_by_user(user.id),
        api_key_count=api_keys.count_active(user.id),
    )


@router.put("/profile/password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    payload: PasswordChange,
    claims: TokenClaims = Depends(get_current_claims),
    users: UserService = Depends(get_user_service),
):
    users.change_password(claims.user_id, payload.current_password, payload.new_password)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/usage", response_model=UsageResponse)
def get_usage(
    claims: TokenClaims = Depends(get_current_claims),
    users: UserService = Depends(get_user_service),
    tiers: TierService = Depends(get_tier_service),
    db: Session = Depends(get_db),
):
    """Today's usage counters alongside the limits of the user's current tier"""
    user = users.get(claims.user_id)
    tier = tiers.get(user.tier_id)
    stats = UsageTracker(db).get_today(user.id)
    counters = {name: getattr(stats, name) for name in COUNTERS} if stats else {}
    requests_count = counters.get("requests_count", 0)
    return UsageResponse(
        date=stats.date if stats else today(),
        variable_count=VariableLedger(db).count_by_user(user.id),
        tier_name=tier.name,
        limits=TierLimitsResponse.model_validate(tier),
        requests_remaining=max(tier.max_requests_per_day - requests_count, 0),
        **counters,
    )
