from fastapi import APIRouter, Depends, status

from cloud_variables.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from cloud_variables.dependencies.services import get_user_service
from cloud_variables.services.user_service import UserService

router = APIRouter()


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, users: UserService = Depends(get_user_service)):
    """
    Create an account on the default (free) tier.
    Returns the new user and a session token so the client can start using the API immediately.
    """
    user, token = users.register(payload.email, payload.password)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, users: UserService = Depends(get_user_service)):
    user, token = users.login(payload.email, payload.password)
    return AuthResponse(user=UserResponse.model_validate(user), token=token)
