from functools import lru_cache

from sqlalchemy import BigInteger, Integer, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Use BigInteger in production but fall back to Integer for SQLite
BIGINT = BigInteger().with_variant(Integer, "sqlite")

Base = declarative_base()


def make_engine(url: str):
    """Create an engine; in-memory SQLite shares one connection."""
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(url)


@lru_cache(maxsize=None)
def session_factory(url: str):
    """Return a session factory for ``url``, creating tables on first use."""
    engine = make_engine(url)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


# Re-export models so their tables register on Base.metadata
from .storage import StorageEntry  # noqa: F401,E402
from .order import Order  # noqa: F401,E402
