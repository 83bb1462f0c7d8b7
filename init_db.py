"""
Database initialization script
Creates all tables and optionally seeds the first system administrator
from ADMIN_EMAIL / ADMIN_NAME / ADMIN_PASSWORD
"""
import os
from app.database import engine, Base, SessionLocal
from app.models.user import User, UserRole
from app.models.stores import Store  # noqa: F401
from app.models.ratings import Rating  # noqa: F401
from app.services.account_service import AccountService
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed_admin(db):
    """Create the first SYSTEM_ADMIN if none exists and credentials are configured"""
    email = os.getenv("ADMIN_EMAIL")
    password = os.getenv("ADMIN_PASSWORD")
    if not email or not password:
        logger.info("ADMIN_EMAIL/ADMIN_PASSWORD not set, skipping admin seed")
        return None

    if db.query(User).filter(User.role == UserRole.SYSTEM_ADMIN).first():
        logger.info("A system administrator already exists, skipping admin seed")
        return None

    admin = AccountService(db).create(
        email=email,
        name=os.getenv("ADMIN_NAME", "System Administrator"),
        password=password,
        role=UserRole.SYSTEM_ADMIN,
    )
    logger.info(f"✓ System administrator created: {admin.email}")
    return admin


def init_db():
    """Initialize database with all tables"""
    try:
        logger.info("Creating all database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("✓ Database tables created successfully!")

        db = SessionLocal()
        try:
            seed_admin(db)
        finally:
            db.close()

        logger.info("\nDatabase initialization complete!")
        logger.info("You can now start the FastAPI server.")

    except Exception as e:
        logger.error(f"✗ Error initializing database: {str(e)}")
        raise

if __name__ == "__main__":
    init_db()
