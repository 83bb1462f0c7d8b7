from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.user import User, UserRole
from app.core.security import verify_access_token
from app.services.account_service import AccountService
from app.services.aggregation_service import AggregationService
from app.services.rating_service import RatingService
from app.services.store_service import StoreService


def get_current_user(
    token_payload: dict = Depends(verify_access_token),
    db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get the current authenticated user from the database.
    Validates the bearer token and returns the User object.
    """
    user_id = token_payload.get("sub")

    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def require_role(allowed_roles: list):
    """
    Dependency factory to check if the user has a required role.
    Usage: Depends(require_role([UserRole.SYSTEM_ADMIN, UserRole.STORE_OWNER]))
    """
    allowed = [UserRole(role) for role in allowed_roles]

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join(role.value for role in allowed)}"
            )
        return current_user
    return role_checker


# Request-scoped service instances, each bound to the request's session

def get_aggregation_service(db: Session = Depends(get_db)) -> AggregationService:
    return AggregationService(db)


def get_account_service(db: Session = Depends(get_db)) -> AccountService:
    return AccountService(db)


def get_rating_service(db: Session = Depends(get_db)) -> RatingService:
    return RatingService(db)


def get_store_service(
    db: Session = Depends(get_db),
    aggregation: AggregationService = Depends(get_aggregation_service),
) -> StoreService:
    return StoreService(db, aggregation)
