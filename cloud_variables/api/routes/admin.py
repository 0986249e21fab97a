"""
Admin-only endpoints: user management, tier promotion, tier catalogue and storage maintenance.
"""
import math
from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from cloud_variables.core.errors import ValidationError
from cloud_variables.db.session import get_db
from cloud_variables.dependencies.auth import require_admin
from cloud_variables.dependencies.services import (
    get_blob_store,
    get_promotion_service,
    get_tier_service,
    get_user_service,
)
from cloud_variables.schemas.admin import (
    AdminUserUpdate,
    PromoteRequest,
    PromotionResponse,
    ReconciliationResponse,
    UserListResponse,
)
from cloud_variables.schemas.auth import UserResponse
from cloud_variables.schemas.tier import TierCreate, TierResponse, TierUpdate
from cloud_variables.services.promotion_service import PromotionService
from cloud_variables.services.reconciliation import reconcile_orphans
from cloud_variables.services.tier_service import TierService
from cloud_variables.services.user_service import UserService
from cloud_variables.services.variable_ledger import VariableLedger
from cloud_variables.storage.base import BlobStore
from cloud_variables.utils.auth import TokenClaims
from cloud_variables.utils.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter()


# -- users ---------------------------------------------------------------

@router.get("/users", response_model=UserListResponse)
def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, max_length=255),
    admin: TokenClaims = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    rows, total = users.list(page, page_size, search)
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in rows],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if total else 0,
    )


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    payload: AdminUserUpdate,
    admin: TokenClaims = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    """Enable/disable an account or mark its email as verified"""
    if user_id == admin.user_id and payload.is_active is False:
        raise ValidationError("Admins cannot disable their own account")
    return users.update_status(
        user_id, is_active=payload.is_active, email_verified=payload.email_verified
    )


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    admin: TokenClaims = Depends(require_admin),
    users: UserService = Depends(get_user_service),
    blob_store: BlobStore = Depends(get_blob_store),
):
    if user_id == admin.user_id:
        raise ValidationError("Admins cannot delete their own account")
    users.delete(user_id, blob_store)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/users/{user_id}/promote",
    response_model=PromotionResponse,
    status_code=status.HTTP_201_CREATED,
)
def promote_user(
    user_id: int,
    payload: PromoteRequest,
    admin: TokenClaims = Depends(require_admin),
    promotions: PromotionService = Depends(get_promotion_service),
):
    """
    Move a user to another tier and record who did it and why.
    The user's existing session tokens keep the old tier until they log in again.
    """
    return promotions.promote(user_id, payload.tier_id, admin.user_id, payload.reason)


@router.get("/users/{user_id}/promotions", response_model=List[PromotionResponse])
def list_promotions(
    user_id: int,
    admin: TokenClaims = Depends(require_admin),
    promotions: PromotionService = Depends(get_promotion_service),
):
    return promotions.history(user_id)


# -- tiers ---------------------------------------------------------------

@router.post("/tiers", response_model=TierResponse, status_code=status.HTTP_201_CREATED)
def create_tier(
    payload: TierCreate,
    admin: TokenClaims = Depends(require_admin),
    tiers: TierService = Depends(get_tier_service),
):
    return tiers.create(**payload.model_dump())


@router.get("/tiers", response_model=List[TierResponse])
def list_tiers(
    admin: TokenClaims = Depends(require_admin),
    tiers: TierService = Depends(get_tier_service),
):
    return tiers.list()


@router.get("/tiers/{tier_id}", response_model=TierResponse)
def get_tier(
    tier_id: int,
    admin: TokenClaims = Depends(require_admin),
    tiers: TierService = Depends(get_tier_service),
):
    return tiers.get(tier_id)


@router.patch("/tiers/{tier_id}", response_model=TierResponse)
def update_tier(
    tier_id: int,
    payload: TierUpdate,
    admin: TokenClaims = Depends(require_admin),
    tiers: TierService = Depends(get_tier_service),
):
    return tiers.update(tier_id, **payload.model_dump(exclude_unset=True))


@router.delete("/tiers/{tier_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tier(
    tier_id: int,
    admin: TokenClaims = Depends(require_admin),
    tiers: TierService = Depends(get_tier_service),
):
    tiers.delete(tier_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -- maintenance ---------------------------------------------------------

@router.post("/maintenance/reconcile", response_model=ReconciliationResponse)
def reconcile_storage(
    dry_run: bool = Query(True),
    admin: TokenClaims = Depends(require_admin),
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Report (or with dry_run=false, delete) blobs no variable points at"""
    report = reconcile_orphans(VariableLedger(db).all_storage_paths(), blob_store, dry_run=dry_run)
    return ReconciliationResponse(**asdict(report))
