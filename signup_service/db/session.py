from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from signup_service.core.config import settings

# Fixed-size pool: every registration write holds one connection for the
# length of its transaction, so pool_size bounds concurrent writes.
engine = create_engine(
    settings.DATABASE_URL,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=0,
    pool_timeout=settings.DB_POOL_TIMEOUT,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
