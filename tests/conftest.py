"""Pytest configuration and fixtures."""

import os

# keep app.utils.database off any real server during tests
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.models.contract_model import Contract
from app.models.payment_model import Payment
from app.utils.database import Base, get_db


@pytest.fixture
def engine():
    """Fresh in-memory database per test."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """API client with get_db bound to the test database."""
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_contract(db):
    """Insert a contract with sensible CFD defaults."""

    def _make(**overrides) -> Contract:
        values = {
            "property_id": "#33",
            "buyer_name": "Maria Lopez",
            "origin_type": "DIRECT",
            "sale_type": "CFD",
            "county": "Bastrop",
            "state": "TX",
            "contract_date": date(2025, 4, 25),
            "contract_price": Decimal("12000.00"),
            "cost_basis": Decimal("4000.00"),
            "down_payment": Decimal("1000.00"),
            "installment_amount": Decimal("195.00"),
            "installment_count": 35,
            "first_installment_date": date(2025, 5, 25),
            "status": "Active",
        }
        values.update(overrides)
        contract = Contract(**values)
        db.add(contract)
        db.commit()
        db.refresh(contract)
        return contract

    return _make


@pytest.fixture
def make_payment(db):
    def _make(contract: Contract, **overrides) -> Payment:
        values = {
            "contract_id": contract.id,
            "property_id": contract.property_id,
            "payment_date": date(2025, 5, 25),
            "amount_total": Decimal("195.00"),
            "principal_amount": Decimal("195.00"),
            "late_fee_amount": Decimal("0.00"),
            "received_by": "GT_REAL_BANK",
            "channel": "ZELLE",
        }
        values.update(overrides)
        payment = Payment(**values)
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return payment

    return _make
