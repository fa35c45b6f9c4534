"""
User endpoints for API v1.

Sign-up, sign-in, the caller's own profile, password resets and the
administrative user list.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from booking_marketplace_api.app.core.db import ROLE_ADMIN
from booking_marketplace_api.app.core.security import get_current_user, require_roles
from booking_marketplace_api.app.schemas.user import (
    PasswordResetConfirm,
    PasswordResetRequest,
    ProfileUpdate,
    TokenResponse,
    UserAdminUpdate,
    UserCreate,
    UserLogin,
    UserRead,
)
from booking_marketplace_api.app.services.user_service import UserService

router = APIRouter()


@router.post("/signup", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def sign_up(user: UserCreate) -> UserRead:
    """Register a new account.

    The very first account becomes the administrator; all later
    accounts are clients.  A duplicate email yields 409.
    """
    return await UserService.sign_up(user)


@router.post("/login", response_model=TokenResponse)
async def sign_in(credentials: UserLogin) -> TokenResponse:
    token = await UserService.sign_in(credentials.email, credentials.password)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return TokenResponse(**token)


@router.get("/me", response_model=UserRead)
async def read_me(current_user: dict = Depends(get_current_user)) -> UserRead:
    return await UserService.get_user_by_id(current_user["user_id"])


@router.put("/me", response_model=UserRead)
async def update_me(updates: ProfileUpdate, current_user: dict = Depends(get_current_user)) -> UserRead:
    """Update the caller's profile.  Only the fields sent are changed."""
    changes = updates.model_dump(exclude_unset=True, exclude_none=True)
    return await UserService.update_profile(current_user["user_id"], changes)


@router.post("/password-reset", status_code=status.HTTP_202_ACCEPTED)
async def request_password_reset(body: PasswordResetRequest) -> dict:
    """Start a password reset.

    The answer is the same whether or not the email is registered.
    """
    await UserService.request_password_reset(body.email)
    return {"detail": "Se o email estiver registado, receberá instruções de recuperação."}


@router.post("/password-reset/confirm", status_code=status.HTTP_204_NO_CONTENT)
async def confirm_password_reset(body: PasswordResetConfirm) -> None:
    await UserService.confirm_password_reset(body.token, body.new_password)


@router.get("/", response_model=List[UserRead])
async def list_users(
    role_id: Optional[int] = Query(None, ge=1, le=3),
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> List[UserRead]:
    """List all accounts (administrators only)."""
    return await UserService.list_users(role_id)


@router.get("/{user_id}", response_model=UserRead)
async def get_user(user_id: int, current_user: dict = Depends(require_roles(ROLE_ADMIN))) -> UserRead:
    return await UserService.get_user_by_id(user_id)


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: int,
    updates: UserAdminUpdate,
    current_user: dict = Depends(require_roles(ROLE_ADMIN)),
) -> UserRead:
    """Change role, activation or verification of an account."""
    return await UserService.update_user(
        user_id, updates.model_dump(exclude_unset=True, exclude_none=True), admin_id=current_user.get("user_id")
    )
