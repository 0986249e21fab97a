from pydantic import BaseModel, Field
from typing import Any, List, Optional
from datetime import datetime


class VariableCreate(BaseModel):
    key: str
    data: Any
    description: Optional[str] = Field(default=None, max_length=1000)
    tags: Optional[List[str]] = None
    is_encrypted: bool = False


class VariableUpdate(BaseModel):
    # Omitted fields are left unchanged; "data": null stores a JSON null document
    data: Any = None
    description: Optional[str] = Field(default=None, max_length=1000)
    tags: Optional[List[str]] = None


class VariableSummary(BaseModel):
    id: int
    key: str
    description: Optional[str] = None
    size_bytes: int
    version: int
    is_encrypted: bool
    tags: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VariableResponse(VariableSummary):
    data: Any = None


class VariableListResponse(BaseModel):
    variables: List[VariableSummary]
    total: int
    page: int
    page_size: int
    total_pages: int
