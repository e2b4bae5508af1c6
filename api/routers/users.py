"""
Registration and login endpoints. These are the only unauthenticated
catalog routes.
"""

from fastapi import APIRouter, Depends, status

from api.deps import get_user_usecase
from api.models import Envelope, LoginRequest, RegisterUserRequest, respond
from catalog.schemas import LoginResponse, UserResponse
from catalog.usecases import UserUseCase

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=Envelope[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register(payload: RegisterUserRequest, users: UserUseCase = Depends(get_user_usecase)):
    """
    Register a new user.

    - **username**: Unique username
    - **password**: Plain password, stored hashed
    """
    user = await users.register(payload.username, payload.password)
    return respond(user, status.HTTP_201_CREATED)


@router.post("/login", response_model=Envelope[LoginResponse])
async def login(payload: LoginRequest, users: UserUseCase = Depends(get_user_usecase)):
    """Check credentials and return a bearer token for the catalog endpoints."""
    result = await users.login(payload.username, payload.password)
    return respond(result)
