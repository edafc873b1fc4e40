from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import settings


Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    """Create the engine for ``database_url``.

    SQLite needs ``check_same_thread`` disabled because FastAPI runs sync
    dependencies in a worker thread pool.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


engine = build_engine(settings.DATABASE_URL)

# Keep attributes loaded after commit so handlers can serialise the rows
# they just wrote.
SessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
)


def init_db(bind: Engine = engine) -> None:
    # models must be imported so their tables are registered on Base
    import models  # noqa: F401

    Base.metadata.create_all(bind=bind)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
