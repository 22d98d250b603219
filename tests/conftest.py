import os
from pathlib import Path

# Point the app at throwaway storage before any estimator module reads settings
ROOT = Path(__file__).resolve().parent.parent
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["RULE_TABLES_PATH"] = str(ROOT / "config" / "rule_tables.yaml")
os.environ["LOG_CONFIG_PATH"] = str(ROOT / "tests" / "no-logging.conf")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from estimator.database.core import Base, get_db
from estimator.database.models import SettingRecord  # noqa: F401
from estimator.schemas.rules import WeldRateTable
from estimator.services.rule_table_cache import RuleTableCache
from estimator.services.rule_tables import RuleSet, default_tables
from estimator.settings.service import rule_table_cache
from main import app

# Use an in-memory SQLite database for testing
TEST_SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(autouse=True)
def clear_rule_cache():
    """The process-wide rule cache must not leak tables between tests."""
    rule_table_cache.clear()
    yield
    rule_table_cache.clear()


@pytest.fixture
def rule_set():
    """Shop default rule tables as one snapshot."""
    return RuleSet.from_tables(default_tables())


@pytest.fixture
def weld_rates():
    return WeldRateTable.model_validate({"A36": "4.00", "304 S/S": "8.50", "default": "5.00"})


@pytest.fixture
def cache():
    return RuleTableCache(size_limit=10)


@pytest.fixture(scope="function")
def db_session():
    """
    Creates a new, isolated in-memory database session for each test.
    """
    engine = create_engine(
        TEST_SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Creates a TestClient for the app with the database dependency overridden.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
