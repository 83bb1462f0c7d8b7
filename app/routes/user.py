from fastapi import APIRouter, Depends, Query, status
from typing import Optional
import logging
from app.models.user import User, UserRole
from app.schemas.user import (
    UserCreate,
    UserUpdate,
    ProfileUpdate,
    User as UserSchema,
    UserPaginatedResponse,
    UserStats,
)
from app.core.dependencies import get_current_user, require_role, get_account_service
from app.services.account_service import AccountService

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

admin_only = require_role([UserRole.SYSTEM_ADMIN])


@router.get("/", response_model=UserPaginatedResponse)
def get_users(
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    current_user: User = Depends(admin_only),
    accounts: AccountService = Depends(get_account_service)
):
    """List users with optional name/email search - requires admin role"""
    return accounts.list_accounts(skip=skip, limit=limit, search=search)


@router.get("/stats", response_model=UserStats)
def get_user_stats(
    current_user: User = Depends(admin_only),
    accounts: AccountService = Depends(get_account_service)
):
    return accounts.stats()


@router.get("/profile/me", response_model=UserSchema)
def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile/me", response_model=UserSchema)
def update_profile(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service)
):
    """Update own name/email; password and role in the body are ignored"""
    return accounts.update_profile(current_user.id, profile.model_dump(exclude_unset=True))


@router.get("/{user_id}", response_model=UserSchema)
def get_user(
    user_id: int,
    current_user: User = Depends(admin_only),
    accounts: AccountService = Depends(get_account_service)
):
    return accounts.get(user_id)


@router.post("/", response_model=UserSchema, status_code=status.HTTP_201_CREATED)
def create_user(
    user: UserCreate,
    current_user: User = Depends(admin_only),
    accounts: AccountService = Depends(get_account_service)
):
    """Create an account with any role - requires admin role"""
    return accounts.create(email=user.email, name=user.name, password=user.password, role=user.role)


@router.put("/{user_id}", response_model=UserSchema)
def update_user(
    user_id: int,
    user_update: UserUpdate,
    current_user: User = Depends(admin_only),
    accounts: AccountService = Depends(get_account_service)
):
    changes = user_update.model_dump(exclude_unset=True)
    return accounts.update(user_id, email=changes.get("email"), name=changes.get("name"))


@router.delete("/{user_id}", status_code=status.HTTP_200_OK)
def delete_user(
    user_id: int,
    current_user: User = Depends(admin_only),
    accounts: AccountService = Depends(get_account_service)
):
    """Delete a user together with their stores and ratings - requires admin role"""
    accounts.delete(user_id)
    return {"user_id": user_id, "detail": "deleted successfully"}
