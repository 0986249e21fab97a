from pydantic import BaseModel, Field
from typing import Any, Optional
from datetime import datetime


class ApiKeyCreate(BaseModel):
    name: str = Field(..., max_length=100)
    expires_in_days: Optional[int] = Field(default=None, ge=1, le=3650)
    permissions: Optional[Any] = None


class ApiKeyResponse(BaseModel):
    id: int
    name: str
    prefix: str
    is_active: bool
    permissions: Optional[Any] = None
    last_used_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ApiKeyCreatedResponse(ApiKeyResponse):
    key: str  # full secret, only ever returned here
