# app/database.py
from sqlmodel import SQLModel, create_engine, Session

from app.core.config import get_settings

settings = get_settings()

# ---------------------------------------------------------
# Supabase Postgres connection (via pooler)
#
# - sslmode=require   : enforce SSL when running in the cloud
# - pool_size=1       : keep only 1 connection to the Supabase pooler
# - max_overflow=0    : do not open extra connections beyond the pool
# - pool_pre_ping=True: validate connections before using them
#
# Supabase Session mode limits the number of clients, so each backend
# process keeps a single pooled connection.
#
# Non-Postgres URLs (SQLite for local runs and tests) use SQLAlchemy's
# default pooling.
# ---------------------------------------------------------


def build_database_url(raw_url: str) -> str:
    """Append sslmode=require to Postgres URLs that don't set it."""
    if not raw_url.startswith("postgres") or "sslmode=" in raw_url:
        return raw_url
    if "?" in raw_url:
        return raw_url + "&sslmode=require"
    return raw_url + "?sslmode=require"


db_url = build_database_url(settings.DATABASE_URL)

if db_url.startswith("postgres"):
    engine = create_engine(
        db_url,
        echo=False,        # set to True if you want to debug SQL queries
        pool_pre_ping=True,
        pool_size=1,
        max_overflow=0,
    )
else:
    engine = create_engine(
        db_url,
        echo=False,
        connect_args=(
            {"check_same_thread": False} if db_url.startswith("sqlite") else {}
        ),
    )


def create_db_and_tables() -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session
