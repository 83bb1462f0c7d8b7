import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.ratings import Rating, RatingValue
from app.models.stores import Store
from app.services.access_control import ensure_can_create_rating, ensure_can_mutate

logger = logging.getLogger(__name__)

COMMENT_MAX_LENGTH = 500

# Sentinel for "field not supplied" in partial updates; None is a valid comment
UNSET = object()


def parse_rating_value(value) -> RatingValue:
    """Accept a RatingValue, "1".."5" or an int 1..5; anything else is rejected"""
    if isinstance(value, RatingValue):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)
    if isinstance(value, str):
        try:
            return RatingValue(value.strip())
        except ValueError:
            pass
    raise ValidationError("Rating value must be one of 1, 2, 3, 4, 5")


def validate_comment(comment: Optional[str]) -> Optional[str]:
    if comment is not None and len(comment) > COMMENT_MAX_LENGTH:
        raise ValidationError(f"Comment cannot exceed {COMMENT_MAX_LENGTH} characters")
    return comment


class RatingService:
    def __init__(self, db: Session):
        self.db = db

    # Reads

    def get(self, rating_id: int) -> Rating:
        rating = (
            self.db.query(Rating)
            .options(joinedload(Rating.user), joinedload(Rating.store))
            .filter(Rating.id == rating_id)
            .first()
        )
        if not rating:
            raise NotFoundError(f"Rating with ID {rating_id} not found")
        return rating

    def find_for_user_and_store(self, user_id: int, store_id: int) -> Optional[Rating]:
        return (
            self.db.query(Rating)
            .filter(Rating.user_id == user_id, Rating.store_id == store_id)
            .first()
        )

    def list_ratings(self, skip: int = 0, limit: int = 10) -> Dict[str, Any]:
        query = self.db.query(Rating).options(joinedload(Rating.user), joinedload(Rating.store))
        total = query.count()
        ratings = query.order_by(Rating.created_at.desc(), Rating.id.desc()).offset(skip).limit(limit).all()
        return {"items": ratings, "total": total, "skip": skip, "limit": limit}

    def list_for_store(self, store_id: int) -> List[Rating]:
        return (
            self.db.query(Rating)
            .options(joinedload(Rating.user))
            .filter(Rating.store_id == store_id)
            .order_by(Rating.created_at.desc(), Rating.id.desc())
            .all()
        )

    def list_for_user(self, user_id: int) -> List[Rating]:
        return (
            self.db.query(Rating)
            .options(joinedload(Rating.store))
            .filter(Rating.user_id == user_id)
            .order_by(Rating.created_at.desc(), Rating.id.desc())
            .all()
        )

    # Mutations

    def create(self, user_id: int, user_role, store_id: int, value, comment: Optional[str] = None) -> Rating:
        """
        Submit a first rating of a store.

        The (user, store) pair is checked before the insert; the unique
        constraint on the table catches a concurrent insert that slips past
        the check, and both surface as ConflictError.
        """
        ensure_can_create_rating(user_role)
        rating_value = parse_rating_value(value)
        comment = validate_comment(comment)

        if not self.db.query(Store.id).filter(Store.id == store_id).first():
            raise NotFoundError(f"Store with ID {store_id} not found")

        if self.find_for_user_and_store(user_id, store_id):
            logger.warning(f"User {user_id} tried to rate store {store_id} twice")
            raise ConflictError("You have already rated this store")

        now = datetime.now(timezone.utc)
        rating = Rating(
            user_id=user_id,
            store_id=store_id,
            rating_value=rating_value,
            comment=comment,
            created_at=now,
            updated_at=now,
        )
        try:
            self.db.add(rating)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Duplicate rating rejected by database for user {user_id}, store {store_id}: {str(e)}")
            raise ConflictError("You have already rated this store")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Unexpected error creating rating: {str(e)}", exc_info=True)
            raise
        self.db.refresh(rating)

        logger.info(f"Rating {rating.id} created: user {user_id} rated store {store_id} with {rating_value.value}")
        return rating

    def update(self, rating_id: int, actor_id: int, actor_role, value=None, comment=UNSET) -> Rating:
        """Partial update; a value of None leaves the rating unchanged, and so does an omitted comment"""
        rating = self.get(rating_id)
        ensure_can_mutate(actor_id, actor_role, rating.user_id, "rating")

        new_value = parse_rating_value(value) if value is not None else None
        if comment is not UNSET:
            comment = validate_comment(comment)

        if new_value is not None:
            rating.rating_value = new_value
        if comment is not UNSET:
            rating.comment = comment
        rating.updated_at = datetime.now(timezone.utc)

        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Unexpected error updating rating {rating_id}: {str(e)}", exc_info=True)
            raise
        self.db.refresh(rating)

        logger.info(f"Rating {rating_id} updated by user {actor_id}")
        return rating

    def delete(self, rating_id: int, actor_id: int, actor_role) -> None:
        rating = self.get(rating_id)
        ensure_can_mutate(actor_id, actor_role, rating.user_id, "rating")

        try:
            self.db.delete(rating)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Unexpected error deleting rating {rating_id}: {str(e)}", exc_info=True)
            raise

        logger.info(f"Rating {rating_id} deleted by user {actor_id}")
