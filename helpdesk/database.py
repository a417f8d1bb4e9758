from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from helpdesk.config import settings


def _connect_args(url: str) -> dict:
    # SQLite connections are shared across the API worker threads
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(settings.database_url, connect_args=_connect_args(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a database session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all tables if they do not exist"""
    # Import models so they register on Base.metadata
    import helpdesk.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
