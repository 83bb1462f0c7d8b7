"""
Shared pytest fixtures: in-memory database, account/store factories and an
API client bound to the test session.
"""
import os
from typing import Generator

# Keep app.database off PostgreSQL while the test modules import it
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.core.security import create_access_token
from app.models.user import User, UserRole
from app.models.stores import Store
from app.models.ratings import Rating, RatingValue
from app.services.account_service import AccountService

DEFAULT_PASSWORD = "Secret#123"


@pytest.fixture
def test_db() -> Generator[Session, None, None]:
    """Create in-memory SQLite database for testing"""
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)


@pytest.fixture
def make_user(test_db):
    """Factory creating accounts through AccountService so passwords are hashed"""
    counter = {"n": 0}

    def _make_user(role=UserRole.NORMAL_USER, email=None, name=None, password=DEFAULT_PASSWORD) -> User:
        counter["n"] += 1
        return AccountService(test_db).create(
            email=email or f"user{counter['n']}@example.com",
            name=name or f"Test User {counter['n']}",
            password=password,
            role=role,
        )

    return _make_user


@pytest.fixture
def make_store(test_db):
    def _make_store(owner: User, name="Corner Store", address="12 Market Street") -> Store:
        store = Store(name=name, address=address, owner_id=owner.id)
        test_db.add(store)
        test_db.commit()
        test_db.refresh(store)
        return store

    return _make_store


@pytest.fixture
def add_rating(test_db):
    """Insert a rating row directly, bypassing the service checks"""
    def _add_rating(user: User, store: Store, value: str, comment=None) -> Rating:
        rating = Rating(user_id=user.id, store_id=store.id, rating_value=RatingValue(value), comment=comment)
        test_db.add(rating)
        test_db.commit()
        test_db.refresh(rating)
        return rating

    return _add_rating


@pytest.fixture
def admin(make_user) -> User:
    return make_user(UserRole.SYSTEM_ADMIN, email="admin@example.com", name="Platform Admin")


@pytest.fixture
def owner(make_user) -> User:
    return make_user(UserRole.STORE_OWNER, email="owner@example.com", name="Store Owner One")


@pytest.fixture
def customer(make_user) -> User:
    return make_user(UserRole.NORMAL_USER, email="customer@example.com", name="Customer One")


@pytest.fixture
def client(test_db) -> Generator[TestClient, None, None]:
    from main import app

    def _get_db():
        yield test_db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def auth_headers():
    """Bearer header for a user, signed with the app secret"""
    def _auth_headers(user: User) -> dict:
        token = create_access_token({"sub": str(user.id), "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
