import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status

from app.models.user import User, UserRole
from app.schemas.stores import (
    StoreCreate,
    StoreUpdate,
    StoreResponse,
    StoreWithStats,
    StorePaginatedResponse,
    StoreDirectoryStats,
)
from app.core.dependencies import require_role, get_store_service
from app.services.store_service import StoreService

router = APIRouter(tags=["stores"])
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

store_managers = require_role([UserRole.STORE_OWNER, UserRole.SYSTEM_ADMIN])


@router.get("/", response_model=StorePaginatedResponse)
async def get_stores(
    skip: int = Query(0, ge=0),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    stores: StoreService = Depends(get_store_service)
):
    """List stores with rating summary; search matches name or address"""
    return stores.list_stores(skip=skip, limit=limit, search=search)


@router.get("/stats", response_model=StoreDirectoryStats)
async def get_store_stats(
    current_user: User = Depends(require_role([UserRole.SYSTEM_ADMIN])),
    stores: StoreService = Depends(get_store_service)
):
    return stores.directory_stats()


@router.get("/owner/my-stores", response_model=List[StoreWithStats])
async def get_my_stores(
    current_user: User = Depends(require_role([UserRole.STORE_OWNER])),
    stores: StoreService = Depends(get_store_service)
):
    """Stores owned by the caller, for the owner dashboard"""
    return stores.list_for_owner(current_user.id)


@router.get("/{store_id}", response_model=StoreWithStats)
async def get_store(
    store_id: int,
    stores: StoreService = Depends(get_store_service)
):
    return stores.get_with_stats(store_id)


@router.post("/", response_model=StoreResponse, status_code=status.HTTP_201_CREATED)
async def create_store(
    store_data: StoreCreate,
    current_user: User = Depends(store_managers),
    stores: StoreService = Depends(get_store_service)
):
    """Create a new store - only owner and admin can create"""
    logger.info(f"=== CREATE STORE called by user: {current_user.name} (ID: {current_user.id}) ===")
    return stores.create(
        actor_id=current_user.id,
        actor_role=current_user.role,
        name=store_data.name,
        address=store_data.address,
        owner_id=store_data.owner_id,
    )


@router.put("/{store_id}", response_model=StoreResponse)
async def update_store(
    store_id: int,
    store_data: StoreUpdate,
    current_user: User = Depends(store_managers),
    stores: StoreService = Depends(get_store_service)
):
    """Update store details - the store's owner or an admin"""
    changes = store_data.model_dump(exclude_unset=True)
    return stores.update(
        store_id,
        actor_id=current_user.id,
        actor_role=current_user.role,
        name=changes.get("name"),
        address=changes.get("address"),
    )


@router.delete("/{store_id}")
async def delete_store(
    store_id: int,
    current_user: User = Depends(store_managers),
    stores: StoreService = Depends(get_store_service)
):
    """Delete a store and its ratings - the store's owner or an admin"""
    stores.delete(store_id, actor_id=current_user.id, actor_role=current_user.role)
    return {"message": "Store deleted successfully"}
