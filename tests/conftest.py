"""
Pytest configuration and fixtures
"""
import asyncio
import os
import tempfile

# Settings are read at import time, so point them at throwaway locations first
_TEST_ROOT = tempfile.mkdtemp(prefix="sqlquest-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_ROOT, 'app.db')}"
os.environ["CHALLENGE_DB_DIR"] = os.path.join(_TEST_ROOT, "databases")
os.environ["REDIS_URL"] = "redis://127.0.0.1:1/0"
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"
os.environ["RATE_LIMIT_PER_HOUR"] = "1000000"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ.pop("GEMINI_API_KEY", None)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from sqlquest.database import Base
import sqlquest.models  # noqa: F401
from sqlquest.services.execution_service import ExecutionService
from sqlquest.services.provisioning_service import ProvisioningService
from sqlquest.utils.sample_challenges import EMPLOYEES_SCHEMA


@pytest.fixture
def db_dir(tmp_path):
    return str(tmp_path / "databases")


@pytest.fixture
def provisioner(db_dir):
    return ProvisioningService(db_dir=db_dir)


@pytest.fixture
def executor(db_dir):
    return ExecutionService(db_dir=db_dir, timeout_seconds=5.0)


@pytest.fixture
def employees_db(provisioner):
    """Provisioned employees database; returns its file name"""
    file_name = provisioner.generate_file_name()
    assert asyncio.run(provisioner.provision(EMPLOYEES_SCHEMA, file_name)) is True
    return file_name


@pytest.fixture
def db_session(tmp_path):
    """Application database session on a private SQLite file"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'app.db'}",
        connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def client():
    """API client with startup (table creation, sample challenges) applied"""
    from fastapi.testclient import TestClient
    from sqlquest.main import app

    with TestClient(app) as test_client:
        yield test_client
