import math
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from cloud_variables.dependencies.services import enforce_daily_request_limit, get_variable_store
from cloud_variables.models.variable import Variable
from cloud_variables.schemas.variable import (
    VariableCreate,
    VariableListResponse,
    VariableResponse,
    VariableSummary,
    VariableUpdate,
)
from cloud_variables.services.variable_store import UNSET, VariableStore
from cloud_variables.utils.auth import TokenClaims
from cloud_variables.utils.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

router = APIRouter()


def _to_response(variable: Variable, document: Any) -> VariableResponse:
    return VariableResponse(**VariableSummary.model_validate(variable).model_dump(), data=document)


@router.post("", response_model=VariableResponse, status_code=status.HTTP_201_CREATED)
def create_variable(
    payload: VariableCreate,
    claims: TokenClaims = Depends(enforce_daily_request_limit),
    store: VariableStore = Depends(get_variable_store),
):
    variable, document = store.create(
        claims,
        payload.key,
        payload.data,
        description=payload.description,
        tags=payload.tags,
        is_encrypted=payload.is_encrypted,
    )
    return _to_response(variable, document)


@router.get("", response_model=VariableListResponse)
def list_variables(
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    search: Optional[str] = Query(None, max_length=255),
    claims: TokenClaims = Depends(enforce_daily_request_limit),
    store: VariableStore = Depends(get_variable_store),
):
    """List the caller's variables, newest first. search matches a substring of the key."""
    rows, total, page, page_size = store.list(claims, page, page_size, search)
    return VariableListResponse(
        variables=[VariableSummary.model_validate(row) for row in rows],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if total else 0,
    )


@router.get("/{variable_id}", response_model=VariableResponse)
def get_variable(
    variable_id: int,
    claims: TokenClaims = Depends(enforce_daily_request_limit),
    store: VariableStore = Depends(get_variable_store),
):
    variable, document = store.get(claims, variable_id)
    return _to_response(variable, document)


@router.patch("/{variable_id}", response_model=VariableResponse)
def update_variable(
    variable_id: int,
    payload: VariableUpdate,
    claims: TokenClaims = Depends(enforce_daily_request_limit),
    store: VariableStore = Depends(get_variable_store),
):
    document = payload.data if "data" in payload.model_fields_set else UNSET
    variable, document = store.update(
        claims,
        variable_id,
        document=document,
        description=payload.description,
        tags=payload.tags,
    )
    return _to_response(variable, document)


@router.delete("/{variable_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_variable(
    variable_id: int,
    claims: TokenClaims = Depends(enforce_daily_request_limit),
    store: VariableStore = Depends(get_variable_store),
):
    store.delete(claims, variable_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
