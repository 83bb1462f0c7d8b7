"""
Domain errors raised by the service layer.

Services never raise HTTPException; each error kind carries the status code
the API layer should answer with, and main.py turns it into a JSON response.
"""
from fastapi import status


class ServiceError(Exception):
    """Base class for every failure a service operation can report"""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(ServiceError):
    """Referenced account, store or rating does not exist"""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ServiceError):
    """Duplicate email or duplicate (user, store) rating"""

    status_code = status.HTTP_409_CONFLICT


class ForbiddenError(ServiceError):
    """Role or ownership check failed"""

    status_code = status.HTTP_403_FORBIDDEN


class ValidationError(ServiceError):
    """Field length, format or enumeration violated"""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class AuthenticationError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
