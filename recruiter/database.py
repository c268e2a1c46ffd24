from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from recruiter.core.config import settings

DATABASE_URL = settings.database_url

# SQLite (default, tests) needs cross-thread access: gateway calls run in the threadpool
_engine_kwargs = {"pool_pre_ping": True}
if DATABASE_URL.startswith("sqlite"):
    _engine_kwargs = {"connect_args": {"check_same_thread": False}}

engine = create_engine(DATABASE_URL, **_engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Request-scoped session. Commits happen in the repository, never here."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create the jobs and applications tables if they are missing."""
    from recruiter.models import job, application  # noqa: F401
    Base.metadata.create_all(bind=engine)
