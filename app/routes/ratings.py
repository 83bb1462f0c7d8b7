import logging
from typing import List
from fastapi import APIRouter, Depends, Query, status

from app.models.user import User, UserRole
from app.schemas.ratings import (
    RatingCreate,
    RatingUpdate,
    RatingResponse,
    RatingPaginatedResponse,
    StoreRatingStats,
    PlatformRatingStats,
)
from app.core.dependencies import get_current_user, require_role, get_rating_service, get_aggregation_service
from app.services.aggregation_service import AggregationService
from app.services.rating_service import RatingService, UNSET

router = APIRouter(tags=["ratings"])
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

raters = require_role([UserRole.NORMAL_USER, UserRole.SYSTEM_ADMIN])


@router.get("/", response_model=RatingPaginatedResponse)
async def get_ratings(
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(require_role([UserRole.SYSTEM_ADMIN])),
    ratings: RatingService = Depends(get_rating_service)
):
    """All ratings, newest first - requires admin role"""
    return ratings.list_ratings(skip=skip, limit=limit)


@router.get("/stats/overall", response_model=PlatformRatingStats)
async def get_overall_stats(
    current_user: User = Depends(require_role([UserRole.SYSTEM_ADMIN])),
    aggregation: AggregationService = Depends(get_aggregation_service)
):
    return aggregation.platform_stats()


@router.get("/store/{store_id}", response_model=List[RatingResponse])
async def get_store_ratings(
    store_id: int,
    ratings: RatingService = Depends(get_rating_service)
):
    return ratings.list_for_store(store_id)


@router.get("/store/{store_id}/stats", response_model=StoreRatingStats)
async def get_store_rating_stats(
    store_id: int,
    aggregation: AggregationService = Depends(get_aggregation_service)
):
    return aggregation.store_stats(store_id)


@router.get("/user/my-ratings", response_model=List[RatingResponse])
async def get_my_ratings(
    current_user: User = Depends(get_current_user),
    ratings: RatingService = Depends(get_rating_service)
):
    return ratings.list_for_user(current_user.id)


@router.post("/", response_model=RatingResponse, status_code=status.HTTP_201_CREATED)
async def create_rating(
    rating_data: RatingCreate,
    current_user: User = Depends(raters),
    ratings: RatingService = Depends(get_rating_service)
):
    return ratings.create(
        user_id=current_user.id,
        user_role=current_user.role,
        store_id=rating_data.store_id,
        value=rating_data.rating_value,
        comment=rating_data.comment,
    )


@router.put("/{rating_id}", response_model=RatingResponse)
async def update_rating(
    rating_id: int,
    rating_data: RatingUpdate,
    current_user: User = Depends(raters),
    ratings: RatingService = Depends(get_rating_service)
):
    """Change score and/or comment of a rating - its author or an admin"""
    changes = rating_data.model_dump(exclude_unset=True)
    return ratings.update(
        rating_id,
        actor_id=current_user.id,
        actor_role=current_user.role,
        value=changes.get("rating_value"),
        comment=changes.get("comment", UNSET),
    )


@router.delete("/{rating_id}")
async def delete_rating(
    rating_id: int,
    current_user: User = Depends(raters),
    ratings: RatingService = Depends(get_rating_service)
):
    ratings.delete(rating_id, actor_id=current_user.id, actor_role=current_user.role)
    return {"message": "Rating deleted successfully"}
