import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.models.ratings import Rating
from app.models.stores import Store
from app.models.user import User, UserRole
from app.services.access_control import ensure_can_create_store, ensure_can_mutate, STORE_CREATOR_ROLES
from app.services.aggregation_service import AggregationService, STATS_PRECISION, mean, round_half_up

logger = logging.getLogger(__name__)

NAME_MIN_LENGTH = 4
NAME_MAX_LENGTH = 60
ADDRESS_MAX_LENGTH = 400


def validate_store_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise ValidationError(f"Store name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters")
    return name


def validate_store_address(address: Optional[str]) -> str:
    address = (address or "").strip()
    if not address:
        raise ValidationError("Store address is required")
    if len(address) > ADDRESS_MAX_LENGTH:
        raise ValidationError(f"Store address cannot exceed {ADDRESS_MAX_LENGTH} characters")
    return address


class StoreService:
    def __init__(self, db: Session, aggregation: Optional[AggregationService] = None):
        self.db = db
        self.aggregation = aggregation or AggregationService(db)

    def _to_dict(self, store: Store, total_ratings: int, average_rating: float) -> Dict[str, Any]:
        return {
            "id": store.id,
            "name": store.name,
            "address": store.address,
            "owner_id": store.owner_id,
            "owner_name": store.owner.name if store.owner else "Unknown",
            "total_ratings": total_ratings,
            "average_rating": average_rating,
            "created_at": store.created_at,
            "updated_at": store.updated_at,
        }

    def _with_stats(self, stores: List[Store]) -> List[Dict[str, Any]]:
        summaries = self.aggregation.summaries_for(store.id for store in stores)
        return [self._to_dict(store, *summaries[store.id]) for store in stores]

    # Reads

    def get(self, store_id: int) -> Store:
        store = (
            self.db.query(Store)
            .options(joinedload(Store.owner))
            .filter(Store.id == store_id)
            .first()
        )
        if not store:
            raise NotFoundError(f"Store with ID {store_id} not found")
        return store

    def get_with_stats(self, store_id: int) -> Dict[str, Any]:
        store = self.get(store_id)
        return self._to_dict(store, *self.aggregation.store_summary(store.id))

    def list_stores(self, skip: int = 0, limit: int = 10, search: Optional[str] = None) -> Dict[str, Any]:
        query = self.db.query(Store).options(joinedload(Store.owner))

        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(Store.name.ilike(pattern), Store.address.ilike(pattern)))

        total = query.count()
        stores = query.order_by(Store.created_at.desc(), Store.id.desc()).offset(skip).limit(limit).all()

        logger.info(f"Returning {len(stores)} of {total} stores (search={search!r})")
        return {"items": self._with_stats(stores), "total": total, "skip": skip, "limit": limit}

    def list_for_owner(self, owner_id: int) -> List[Dict[str, Any]]:
        stores = (
            self.db.query(Store)
            .options(joinedload(Store.owner))
            .filter(Store.owner_id == owner_id)
            .order_by(Store.created_at.desc(), Store.id.desc())
            .all()
        )
        return self._with_stats(stores)

    def directory_stats(self) -> Dict[str, Any]:
        total = self.db.query(Store).count()
        scores = [
            int(value.value)
            for (value,) in self.db.query(Rating.rating_value).join(Store, Rating.store_id == Store.id).all()
        ]
        return {
            "total": total,
            "total_ratings": len(scores),
            "average_rating": round_half_up(mean(scores), STATS_PRECISION),
        }

    # Mutations

    def _resolve_owner(self, actor_id: int, actor_role, owner_id: Optional[int]) -> int:
        if owner_id is None or owner_id == actor_id:
            return actor_id
        if actor_role != UserRole.SYSTEM_ADMIN:
            raise ForbiddenError("Only administrators can create stores for another account")

        owner = self.db.query(User).filter(User.id == owner_id).first()
        if not owner:
            raise NotFoundError(f"User with ID {owner_id} not found")
        if owner.role not in STORE_CREATOR_ROLES:
            raise ValidationError("Store owner must be a store owner or an administrator")
        return owner.id

    def create(self, actor_id: int, actor_role, name: str, address: str, owner_id: Optional[int] = None) -> Store:
        ensure_can_create_store(actor_role)
        name = validate_store_name(name)
        address = validate_store_address(address)
        owner_id = self._resolve_owner(actor_id, UserRole(actor_role), owner_id)

        now = datetime.now(timezone.utc)
        store = Store(name=name, address=address, owner_id=owner_id, created_at=now, updated_at=now)
        try:
            self.db.add(store)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Unexpected error creating store: {str(e)}", exc_info=True)
            raise
        self.db.refresh(store)

        logger.info(f"Store created successfully: {store.name} (ID: {store.id}, owner: {owner_id})")
        return store

    def update(self, store_id: int, actor_id: int, actor_role, name: Optional[str] = None, address: Optional[str] = None) -> Store:
        store = self.get(store_id)
        ensure_can_mutate(actor_id, actor_role, store.owner_id, "store")

        # Validate every supplied field before touching the row
        if name is not None:
            name = validate_store_name(name)
        if address is not None:
            address = validate_store_address(address)

        if name is not None:
            store.name = name
        if address is not None:
            store.address = address
        store.updated_at = datetime.now(timezone.utc)

        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Unexpected error updating store {store_id}: {str(e)}", exc_info=True)
            raise
        self.db.refresh(store)

        logger.info(f"Store updated successfully: {store.name} (ID: {store.id})")
        return store

    def delete(self, store_id: int, actor_id: int, actor_role) -> None:
        store = self.get(store_id)
        ensure_can_mutate(actor_id, actor_role, store.owner_id, "store")

        try:
            self.db.delete(store)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Unexpected error deleting store {store_id}: {str(e)}", exc_info=True)
            raise

        logger.info(f"Store {store_id} deleted by user {actor_id}")
