# Session management

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from trustcircle.core.settings import settings

DATABASE_URL = settings.database_url


def make_engine(url: str):
    if url.startswith("sqlite"):
        # Lock waits share the store call bound
        connect_args = {"check_same_thread": False, "timeout": settings.store_timeout_seconds}
        # In-memory SQLite lives on one connection; share it across threads
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
        return create_engine(url, connect_args=connect_args, pool_pre_ping=True)
    return create_engine(url, pool_pre_ping=True)


engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()
