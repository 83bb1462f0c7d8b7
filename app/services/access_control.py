"""
Authorization rules for store and rating mutations.

Two kinds of checks live here:

* capability gates look only at the caller's role and decide whether the
  caller may create a store or a rating at all;
* ownership checks compare the caller with the account that owns an existing
  resource (a store's ``owner_id`` or a rating's ``user_id``).

Both are evaluated before any write.
"""
import logging

from app.core.exceptions import ForbiddenError
from app.models.user import UserRole

logger = logging.getLogger(__name__)

STORE_CREATOR_ROLES = frozenset({UserRole.STORE_OWNER, UserRole.SYSTEM_ADMIN})
RATING_CREATOR_ROLES = frozenset({UserRole.NORMAL_USER, UserRole.SYSTEM_ADMIN})


def _as_role(role) -> UserRole:
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        raise ForbiddenError(f"Unknown role: {role}")


def can_mutate(actor_id: int, actor_role, resource_owner_id: int) -> bool:
    if _as_role(actor_role) == UserRole.SYSTEM_ADMIN:
        return True
    return actor_id == resource_owner_id


def can_create_store(role) -> bool:
    return _as_role(role) in STORE_CREATOR_ROLES


def can_create_rating(role) -> bool:
    return _as_role(role) in RATING_CREATOR_ROLES


def ensure_can_mutate(actor_id: int, actor_role, resource_owner_id: int, resource: str = "resource") -> None:
    if not can_mutate(actor_id, actor_role, resource_owner_id):
        logger.warning(f"User {actor_id} ({_as_role(actor_role).value}) denied mutation of {resource} owned by {resource_owner_id}")
        raise ForbiddenError(f"You can only modify your own {resource}s")


def ensure_can_create_store(role) -> None:
    if not can_create_store(role):
        raise ForbiddenError("Only store owners and administrators can create stores")


def ensure_can_create_rating(role) -> None:
    if not can_create_rating(role):
        raise ForbiddenError("Only normal users and administrators can submit ratings")

