"""
Test Configuration and Fixtures
Shared testing infrastructure for the stock control core
"""

import os

os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from decimal import Decimal
from typing import Callable, Dict, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from stockcore.main import app
from stockcore.core.database import get_db, Base
from stockcore.models import Product, Supplier
from stockcore.services.stock import ProductStockService

TENANT = "tenant-a"
OTHER_TENANT = "tenant-b"

# In-memory SQLite shared by every session of a test
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test"""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database dependency override"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def tenant_headers() -> Dict[str, str]:
    return {"X-Tenant-ID": TENANT}


@pytest.fixture
def supplier(db_session: Session) -> Supplier:
    """An active supplier of the test tenant"""
    record = Supplier(tenant_id=TENANT, name="Anadolu Gida", contact_person="Ayse", phone="02120000000")
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture
def make_product(db_session: Session) -> Callable[..., Product]:
    """Register a product through the service so it gets its opening entry"""
    def _make(product_id: str = "P001", tenant_id: str = TENANT, **overrides) -> Product:
        data = {
            "product_id": product_id,
            "product_name": f"Product {product_id}",
            "unit": "kg",
            "opening_stock": Decimal("0"),
            "opening_cost": Decimal("0"),
            "reorder_level": Decimal("0"),
            "lead_time_days": 0,
        }
        data.update(overrides)
        return ProductStockService(db_session, tenant_id).register(data)
    return _make


@pytest.fixture
def stocked_product(make_product) -> Product:
    """100 kg at 10.0000 with reorder level 20"""
    return make_product(
        "P001",
        product_name="Flour",
        opening_stock=Decimal("100"),
        opening_cost=Decimal("10"),
        reorder_level=Decimal("20"),
        lead_time_days=5,
    )
