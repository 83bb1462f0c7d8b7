from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List, Dict
from datetime import datetime

from app.models.ratings import RatingValue
from app.schemas.user import UserSummary
from app.schemas.stores import StoreSummary


def _coerce_rating_value(value):
    # Clients may send 4 or "4"
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class RatingCreate(BaseModel):
    store_id: int = Field(..., description="Store being rated")
    rating_value: RatingValue = Field(..., description="Score from 1 to 5")
    comment: Optional[str] = Field(None, max_length=500)

    @field_validator("rating_value", mode="before")
    @classmethod
    def coerce_rating_value(cls, value):
        return _coerce_rating_value(value)

    class Config:
        json_schema_extra = {
            "example": {"store_id": 1, "rating_value": "4", "comment": "Friendly staff"}
        }


class RatingUpdate(BaseModel):
    rating_value: Optional[RatingValue] = None
    comment: Optional[str] = Field(None, max_length=500)

    @field_validator("rating_value", mode="before")
    @classmethod
    def coerce_rating_value(cls, value):
        return _coerce_rating_value(value)


class RatingResponse(BaseModel):
    id: int
    user_id: int
    store_id: int
    rating_value: RatingValue
    comment: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user: Optional[UserSummary] = None
    store: Optional[StoreSummary] = None

    model_config = ConfigDict(from_attributes=True)


class RatingPaginatedResponse(BaseModel):
    items: List[RatingResponse]
    total: int
    skip: int
    limit: int


class StoreRatingStats(BaseModel):
    total_ratings: int
    average_rating: float
    distribution: Dict[str, int]


class PlatformRatingStats(BaseModel):
    total_ratings: int
    average_rating: float
    total_stores: int
    total_users: int
