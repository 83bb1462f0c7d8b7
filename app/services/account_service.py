import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core import security
from app.core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)

NAME_MIN_LENGTH = 4
NAME_MAX_LENGTH = 60
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 16
PASSWORD_SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"

# Fields a user may never change through the profile endpoint
PROFILE_PROTECTED_FIELDS = ("password", "role")


def validate_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        raise ValidationError(f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters")
    return name


def validate_password_policy(password: str) -> None:
    """8-16 characters with at least one uppercase letter and one special character"""
    if not PASSWORD_MIN_LENGTH <= len(password or "") <= PASSWORD_MAX_LENGTH:
        raise ValidationError(f"Password must be {PASSWORD_MIN_LENGTH}-{PASSWORD_MAX_LENGTH} characters long")
    if not re.search(r"[A-Z]", password):
        raise ValidationError("Password must include at least one uppercase letter")
    if not any(char in PASSWORD_SPECIAL_CHARACTERS for char in password):
        raise ValidationError("Password must include at least one special character")


def normalize_email(email: Optional[str]) -> str:
    email = (email or "").strip().lower()
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValidationError(f"Please provide a valid email address: {e}")
    return email


class AccountService:
    def __init__(self, db: Session):
        self.db = db

    # Reads

    def get(self, account_id: int) -> User:
        user = self.db.query(User).filter(User.id == account_id).first()
        if not user:
            raise NotFoundError(f"User with ID {account_id} not found")
        return user

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def list_accounts(self, skip: int = 0, limit: int = 10, search: Optional[str] = None) -> Dict[str, Any]:
        query = self.db.query(User)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

        total = query.count()
        users = query.order_by(User.created_at.desc(), User.id.desc()).offset(skip).limit(limit).all()
        return {"items": users, "total": total, "skip": skip, "limit": limit}

    def stats(self) -> Dict[str, Any]:
        by_role = {role.value: 0 for role in UserRole}
        for role, count in self.db.query(User.role, func.count(User.id)).group_by(User.role).all():
            by_role[role.value] = count
        return {"total": sum(by_role.values()), "by_role": by_role}

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.find_by_email(email)
        if not user or not security.verify_password(password, user.hashed_password):
            return None
        return user

    # Mutations

    def _ensure_email_available(self, email: str, account_id: Optional[int] = None) -> None:
        existing = self.find_by_email(email)
        if existing and existing.id != account_id:
            logger.warning(f"Email {email} is already registered to user {existing.id}")
            raise ConflictError("User with this email already exists")

    def _commit(self, user: User, action: str) -> User:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Integrity error while trying to {action} user: {str(e)}")
            raise ConflictError("User with this email already exists")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Unexpected error while trying to {action} user: {str(e)}", exc_info=True)
            raise
        self.db.refresh(user)
        return user

    def create(self, email: str, name: str, password: str, role=UserRole.NORMAL_USER) -> User:
        email = normalize_email(email)
        name = validate_name(name)
        validate_password_policy(password)
        try:
            role = UserRole(role or UserRole.NORMAL_USER)
        except ValueError:
            raise ValidationError("Role must be one of SYSTEM_ADMIN, NORMAL_USER, STORE_OWNER")
        self._ensure_email_available(email)

        now = datetime.now(timezone.utc)
        user = User(
            email=email,
            name=name,
            hashed_password=security.get_password_hash(password),
            role=role,
            created_at=now,
            updated_at=now,
        )
        self.db.add(user)
        self._commit(user, "create")

        logger.info(f"Account created: {user.email} (ID: {user.id}, role: {user.role.value})")
        return user

    register = create

    def update(self, account_id: int, email: Optional[str] = None, name: Optional[str] = None) -> User:
        """Change name and/or email; role and password are never touched here"""
        user = self.get(account_id)

        if email is not None:
            email = normalize_email(email)
            if email != user.email:
                self._ensure_email_available(email, account_id)
        if name is not None:
            name = validate_name(name)

        if email is not None:
            user.email = email
        if name is not None:
            user.name = name
        user.updated_at = datetime.now(timezone.utc)
        self._commit(user, "update")

        logger.info(f"Account {account_id} updated")
        return user

    def update_profile(self, account_id: int, changes: Dict[str, Any]) -> User:
        safe_changes = {key: value for key, value in changes.items() if key not in PROFILE_PROTECTED_FIELDS}
        return self.update(account_id, email=safe_changes.get("email"), name=safe_changes.get("name"))

    def change_password(self, account_id: int, current_password: str, new_password: str) -> None:
        user = self.get(account_id)
        if not security.verify_password(current_password, user.hashed_password):
            logger.warning(f"Password change for user {account_id} rejected: current password mismatch")
            raise AuthenticationError("Current password is incorrect")
        validate_password_policy(new_password)

        user.hashed_password = security.get_password_hash(new_password)
        user.updated_at = datetime.now(timezone.utc)
        self._commit(user, "change password of")
        logger.info(f"Password changed for user {account_id}")

    def delete(self, account_id: int) -> None:
        user = self.get(account_id)
        try:
            self.db.delete(user)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Unexpected error deleting user {account_id}: {str(e)}", exc_info=True)
            raise
        logger.info(f"Account {account_id} deleted")
