from pydantic import BaseModel, Field, EmailStr, ConfigDict
from typing import Optional, List, Dict
from datetime import datetime

from app.models.user import UserRole


class UserLogin(BaseModel):
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="User password")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "user@example.com",
                "password": "Secret#123"
            }
        }


class UserBase(BaseModel):
    email: EmailStr = Field(..., description="User email address")
    name: str = Field(
        min_length=4,
        max_length=60,
        description="Full name (4-60 characters)"
    )


class UserRegister(UserBase):
    password: str = Field(
        min_length=8,
        max_length=16,
        description="Password (8-16 characters, one uppercase letter and one special character)",
        examples=["Secret#123"],
    )
    role: Optional[UserRole] = Field(None, description="Defaults to NORMAL_USER")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "user@example.com",
                "name": "Jane Customer",
                "password": "Secret#123",
                "role": "NORMAL_USER"
            }
        }


class UserCreate(UserRegister):
    role: UserRole = Field(UserRole.NORMAL_USER, description="Role of the user")


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, min_length=4, max_length=60)


class ProfileUpdate(UserUpdate):
    # Accepted so that clients sending them get a 200, but always discarded
    password: Optional[str] = None
    role: Optional[str] = None


class PasswordUpdate(BaseModel):
    current_password: str = Field(..., description="Current password")
    new_password: str = Field(..., min_length=8, max_length=16, description="New password")


class User(BaseModel):
    id: int
    email: str
    name: str
    role: UserRole
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class UserSummary(BaseModel):
    id: int
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class UserPaginatedResponse(BaseModel):
    items: List[User]
    total: int
    skip: int
    limit: int


class UserStats(BaseModel):
    total: int
    by_role: Dict[str, int]


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TokenWithRefresh(Token):
    refresh_token: str


class AuthResponse(TokenWithRefresh):
    user: User


class RefreshTokenRequest(BaseModel):
    refresh_token: str

    class Config:
        json_schema_extra = {
            "example": {"refresh_token": "<your_refresh_token_here>"}
        }
