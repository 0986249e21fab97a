from typing import List

from fastapi import APIRouter, Depends, Response, status

from cloud_variables.dependencies.auth import get_current_claims
from cloud_variables.dependencies.services import get_api_key_service, get_tier_service
from cloud_variables.schemas.api_key import ApiKeyCreate, ApiKeyCreatedResponse, ApiKeyResponse
from cloud_variables.services.api_key_service import ApiKeyService
from cloud_variables.services.tier_service import TierService
from cloud_variables.utils.auth import TokenClaims

router = APIRouter()


@router.post("", response_model=ApiKeyCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_api_key(
    payload: ApiKeyCreate,
    claims: TokenClaims = Depends(get_current_claims),
    api_keys: ApiKeyService = Depends(get_api_key_service),
    tiers: TierService = Depends(get_tier_service),
):
    """
    Create an API key. The full key is only returned in this response;
    store it now, it cannot be retrieved later.
    """
    api_key, secret = api_keys.create(
        claims.user_id,
        tiers.get(claims.tier),
        payload.name,
        expires_in_days=payload.expires_in_days,
        permissions=payload.permissions,
    )
    return ApiKeyCreatedResponse(**ApiKeyResponse.model_validate(api_key).model_dump(), key=secret)


@router.get("", response_model=List[ApiKeyResponse])
def list_api_keys(
    claims: TokenClaims = Depends(get_current_claims),
    api_keys: ApiKeyService = Depends(get_api_key_service),
):
    return api_keys.list(claims.user_id)


@router.post("/{key_id}/revoke", status_code=status.HTTP_204_NO_CONTENT)
def revoke_api_key(
    key_id: int,
    claims: TokenClaims = Depends(get_current_claims),
    api_keys: ApiKeyService = Depends(get_api_key_service),
):
    api_keys.revoke(key_id, claims.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{key_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_api_key(
    key_id: int,
    claims: TokenClaims = Depends(get_current_claims),
    api_keys: ApiKeyService = Depends(get_api_key_service),
):
    api_keys.delete(key_id, claims.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
