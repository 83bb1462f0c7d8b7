# package marker for app.models

# Import all models to ensure relationships are properly initialized
from app.models.user import User, UserRole
from app.models.stores import Store
from app.models.ratings import Rating, RatingValue

__all__ = [
    "User",
    "UserRole",
    "Store",
    "Rating",
    "RatingValue",
]
