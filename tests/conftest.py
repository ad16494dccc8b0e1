"""
Shared pytest fixtures — in‑memory SQLite ledger, FastAPI TestClient and a
pipeline config pointing at test endpoints.
"""
import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="billread-tests-")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("DATA_DIR", _TMP)
os.environ.setdefault("BILLS_DIR", os.path.join(_TMP, "bills"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.config import PipelineConfig  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.ledger import StatusLedger  # noqa: E402
from app.main import app  # noqa: E402
from app.models import ProcessingQueueModel  # noqa: F401,E402  — register model

# StaticPool ensures all connections share the same in-memory database
_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
_Session = sessionmaker(autocommit=False, autoflush=False, bind=_ENGINE)


@pytest.fixture(autouse=True)
def _reset_tables():
    Base.metadata.create_all(bind=_ENGINE)
    yield
    Base.metadata.drop_all(bind=_ENGINE)


@pytest.fixture()
def db():
    session = _Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def ledger(db):
    return StatusLedger(db)


@pytest.fixture()
def client(db):
    def _override():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = _override
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def config():
    return PipelineConfig(
        ocr_endpoint="https://ocr.test/api/v2",
        extraction_endpoint="https://llm.test/v1/chat/completions",
        notifier_endpoint="https://mail.test/emails",
        poll_interval=0,
        max_attempts=3,
        fixed_wait=5,
    )
