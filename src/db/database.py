"""Generate database sessions"""

from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.db.schema import Base


def make_session_factory(database_url: str) -> sessionmaker[Session]:
    """Engine + session factory, tables created on the spot."""
    if database_url.startswith("sqlite"):
        # an in-memory database only exists on its one connection, so keep a single shared one
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(database_url)

    # Ensure all tables are created
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
