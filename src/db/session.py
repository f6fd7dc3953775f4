"""Database engine and session factory."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.config.settings import DATABASE_URL

from .base import Base

engine = create_engine(DATABASE_URL, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(bind=None) -> None:
    """Create missing tables (portfolio ledger and price cache)."""
    # Register models on Base.metadata
    from .models import portfolio_transaction, price_cache  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
