from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class TierCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    max_variables: int = Field(..., ge=0)
    max_variable_size_mb: int = Field(..., ge=0)
    max_requests_per_day: int = Field(..., ge=0)
    max_api_keys: int = Field(..., ge=0)
    price_monthly: int = Field(default=0, ge=0)
    is_active: bool = True


class TierUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    max_variables: Optional[int] = Field(default=None, ge=0)
    max_variable_size_mb: Optional[int] = Field(default=None, ge=0)
    max_requests_per_day: Optional[int] = Field(default=None, ge=0)
    max_api_keys: Optional[int] = Field(default=None, ge=0)
    price_monthly: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class TierResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    max_variables: int
    max_variable_size_mb: int
    max_requests_per_day: int
    max_api_keys: int
    price_monthly: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
