# tests/conftest.py
import os

os.environ.setdefault("TOLLPAY_CONFIRMATION_DELAY", "0")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from tollpay.app import app, get_service
from tollpay.blockchain import FixedVerifier
from tollpay.database import init_db, make_engine
from tollpay.transactions import TransactionService


@pytest.fixture
def session_factory():
    """Fresh in-memory transaction log per test."""
    engine = make_engine("sqlite://")
    init_db(engine)
    yield sessionmaker(bind=engine, autoflush=False, autocommit=False)
    engine.dispose()


@pytest.fixture
def verifier():
    return FixedVerifier(True)


@pytest.fixture
def service(session_factory, verifier):
    return TransactionService(
        session_factory=session_factory,
        verifier=verifier,
        hasher=lambda: "0x" + "ab" * 26,
        confirmation_delay=0,
        enforce_tariff=False,
    )


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
