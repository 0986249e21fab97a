from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from cloud_variables.schemas.auth import UserResponse


class AdminUserUpdate(BaseModel):
    is_active: Optional[bool] = None
    email_verified: Optional[bool] = None


class UserListResponse(BaseModel):
    users: List[UserResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class PromoteRequest(BaseModel):
    tier_id: int
    reason: Optional[str] = None


class PromotionResponse(BaseModel):
    id: int
    user_id: int
    from_tier_id: int
    to_tier_id: int
    promoted_by: int
    reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ReconciliationResponse(BaseModel):
    dry_run: bool
    scanned: int
    orphaned: List[str]
    deleted: List[str]
    failed: List[str]
