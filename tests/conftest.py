"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from decimal import Decimal
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import Settings
from src.db.schema import Base
from src.db.sql_repository import SQLPayoutRepository
from src.main import create_app
from src.services.arena_service import ArenaService, build_arena_service
from tests.fakes import ARENA_WALLET, STARTING_TIME_MS, FakeClock, FakeLedger

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture
def db_session_factory() -> Generator[sessionmaker[Session], None, None]:
    """Tables are removed at teardown to make tests independent of each other."""
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        wallet_address=ARENA_WALLET,
        payout_url="http://signer.test/payouts",
        commission_rate=Decimal("0.10"),
        starting_time_ms=STARTING_TIME_MS,
        log_level="DEBUG",
    )


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def payout_repository(
    db_session_factory: sessionmaker[Session],
) -> SQLPayoutRepository:
    return SQLPayoutRepository(db_session_factory)


@pytest.fixture
def service(
    settings: Settings,
    ledger: FakeLedger,
    clock: FakeClock,
    payout_repository: SQLPayoutRepository,
) -> ArenaService:
    return build_arena_service(
        settings, ledger=ledger, repository=payout_repository, time_source=clock
    )


@pytest.fixture
def client(settings: Settings, service: ArenaService) -> Generator[TestClient, None, None]:
    with TestClient(create_app(settings, service)) as test_client:
        yield test_client
