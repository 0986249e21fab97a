from pydantic import BaseModel
from typing import Optional
from datetime import date as date_type

from cloud_variables.schemas.auth import UserResponse


class ProfileResponse(BaseModel):
    user: UserResponse
    tier_name: str
    variable_count: int
    api_key_count: int


class PasswordChange(BaseModel):
    current_password: str
    new_password: str


class TierLimitsResponse(BaseModel):
    max_variables: int
    max_variable_size_mb: int
    max_requests_per_day: int
    max_api_keys: int

    class Config:
        from_attributes = True


class UsageResponse(BaseModel):
    date: date_type
    requests_count: int = 0
    variables_created: int = 0
    variables_updated: int = 0
    variables_deleted: int = 0
    variables_read: int = 0
    total_bytes_stored: int = 0
    total_bytes_transferred: int = 0
    variable_count: int
    tier_name: str
    limits: TierLimitsResponse
    requests_remaining: Optional[int] = None
