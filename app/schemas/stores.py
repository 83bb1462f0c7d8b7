from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


class StoreBase(BaseModel):
    name: str = Field(..., min_length=4, max_length=60, description="Store name (4-60 characters)")
    address: str = Field(..., min_length=1, max_length=400, description="Store address (max 400 characters)")


class StoreCreate(StoreBase):
    owner_id: Optional[int] = Field(None, description="Owner account; administrators only, defaults to the caller")


class StoreUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=4, max_length=60)
    address: Optional[str] = Field(None, min_length=1, max_length=400)


class StoreResponse(StoreBase):
    id: int
    owner_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class StoreWithStats(StoreResponse):
    owner_name: str
    total_ratings: int = 0
    average_rating: float = 0.0


class StoreSummary(BaseModel):
    id: int
    name: str
    address: str

    model_config = ConfigDict(from_attributes=True)


class StorePaginatedResponse(BaseModel):
    items: List[StoreWithStats]
    total: int
    skip: int
    limit: int


class StoreDirectoryStats(BaseModel):
    total: int
    total_ratings: int
    average_rating: float
