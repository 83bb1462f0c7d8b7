from fastapi import APIRouter, Depends, HTTPException, status
import logging
from app.models.user import User
from app.schemas.user import (
    UserRegister,
    UserLogin,
    User as UserSchema,
    AuthResponse,
    TokenWithRefresh,
    RefreshTokenRequest,
    PasswordUpdate,
)
from app.core.security import create_access_token, create_refresh_token, decode_token, is_refresh_token
from app.core.dependencies import get_current_user, get_account_service
from app.services.account_service import AccountService

router = APIRouter()
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _issue_tokens(user: User) -> dict:
    claims = {"sub": str(user.id), "role": user.role.value}
    return {
        "access_token": create_access_token(claims),
        "refresh_token": create_refresh_token(claims),
        "token_type": "bearer",
    }


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    registration: UserRegister,
    accounts: AccountService = Depends(get_account_service)
):
    """Public registration; role defaults to NORMAL_USER"""
    user = accounts.register(
        email=registration.email,
        name=registration.name,
        password=registration.password,
        role=registration.role,
    )
    return {**_issue_tokens(user), "user": UserSchema.model_validate(user)}


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    accounts: AccountService = Depends(get_account_service)
):
    logger.info(f"Authenticating user with email: {credentials.email}")
    user = accounts.authenticate(credentials.email, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )
    return {**_issue_tokens(user), "user": UserSchema.model_validate(user)}


@router.post("/refresh", response_model=TokenWithRefresh)
async def refresh_token(request: RefreshTokenRequest):
    if not is_refresh_token(request.refresh_token):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    payload = decode_token(request.refresh_token)
    claims = {"sub": payload.get("sub"), "role": payload.get("role")}
    return {
        "access_token": create_access_token(claims),
        "refresh_token": create_refresh_token(claims),
        "token_type": "bearer",
    }


@router.post("/update-password")
async def update_password(
    passwords: PasswordUpdate,
    current_user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service)
):
    accounts.change_password(current_user.id, passwords.current_password, passwords.new_password)
    return {"message": "Password updated successfully"}
