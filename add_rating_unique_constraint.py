"""
Migration script to add a unique constraint on ratings (user_id, store_id)
Databases created before the constraint existed may hold duplicate ratings for
the same user and store; the newest rating of each pair is kept
"""
import sys
from sqlalchemy import create_engine, text
from app.database import SQLALCHEMY_DATABASE_URL

CONSTRAINT_NAME = "uq_rating_user_store"


def add_rating_unique_constraint():
    """Remove duplicate (user_id, store_id) ratings and add uq_rating_user_store"""
    engine = create_engine(SQLALCHEMY_DATABASE_URL)

    try:
        with engine.connect() as connection:
            trans = connection.begin()

            try:
                print("Checking if unique constraint already exists...")

                # PostgreSQL specific
                check_constraint = text("""
                    SELECT constraint_name
                    FROM information_schema.table_constraints
                    WHERE table_name = 'ratings'
                    AND constraint_type = 'UNIQUE'
                    AND constraint_name = :name
                """)

                if connection.execute(check_constraint, {"name": CONSTRAINT_NAME}).fetchone():
                    print(f"Constraint '{CONSTRAINT_NAME}' already exists, nothing to do")
                    trans.commit()
                    return True

                print("Checking for duplicate ratings...")

                count_duplicates = text("""
                    SELECT COUNT(*)
                    FROM ratings r
                    WHERE EXISTS (
                        SELECT 1 FROM ratings newer
                        WHERE newer.user_id = r.user_id
                        AND newer.store_id = r.store_id
                        AND (newer.updated_at > r.updated_at
                             OR (newer.updated_at = r.updated_at AND newer.id > r.id))
                    )
                """)

                duplicate_count = connection.execute(count_duplicates).scalar()

                if duplicate_count > 0:
                    print(f"Found {duplicate_count} superseded duplicate ratings")
                    print("Deleting all but the newest rating per user and store...")

                    delete_duplicates = text("""
                        DELETE FROM ratings r
                        WHERE EXISTS (
                            SELECT 1 FROM ratings newer
                            WHERE newer.user_id = r.user_id
                            AND newer.store_id = r.store_id
                            AND (newer.updated_at > r.updated_at
                                 OR (newer.updated_at = r.updated_at AND newer.id > r.id))
                        )
                    """)

                    connection.execute(delete_duplicates)
                    print(f"✓ Removed {duplicate_count} duplicate ratings")
                else:
                    print("✓ No duplicate ratings found")

                print("Adding unique constraint on (user_id, store_id)...")

                add_constraint = text(f"""
                    ALTER TABLE ratings
                    ADD CONSTRAINT {CONSTRAINT_NAME}
                    UNIQUE (user_id, store_id)
                """)

                connection.execute(add_constraint)
                trans.commit()

                print("✓ Successfully added unique constraint!")
                print("✓ A user can now hold at most one rating per store at the database level")
                return True

            except Exception as e:
                trans.rollback()
                print(f"✗ Error during migration: {str(e)}")
                return False

    except Exception as e:
        print(f"✗ Failed to connect to database: {str(e)}")
        return False

if __name__ == "__main__":
    print("=" * 60)
    print("Rating Unique Constraint Migration")
    print("=" * 60)
    print()

    success = add_rating_unique_constraint()

    print()
    if success:
        print("Migration completed successfully! ✓")
        sys.exit(0)
    else:
        print("Migration failed! ✗")
        sys.exit(1)
