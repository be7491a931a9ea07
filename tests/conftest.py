"""Pytest configuration and fixtures"""
import os
import uuid
from decimal import Decimal
from unittest.mock import Mock

import pytest

# Set test environment variables before any app module reads settings
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test_anon_key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test_jwt_secret")

from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel, Session, create_engine  # noqa: E402

from app.core.session import Identity, SessionProvider  # noqa: E402
from app.models.cart import CartItem  # noqa: E402,F401
from app.models.product import BillingPeriod, Product, ProductCategory  # noqa: E402
from app.repositories.cart_repo import CartRepository  # noqa: E402
from app.repositories.product_repo import ProductRepository  # noqa: E402
from app.services.cart_engine import CartEngine  # noqa: E402


@pytest.fixture
def db_engine():
    """In-memory SQLite engine shared across threads (TestClient runs sync routes in a pool)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(db_engine):
    with Session(db_engine) as session:
        yield session


@pytest.fixture
def make_product(session):
    """Factory inserting a catalog product."""

    def _make(
        name="Solo Miner Membership",
        price="19.95",
        billing_period=BillingPeriod.MONTHLY,
        category=ProductCategory.MEMBERSHIP,
        is_active=True,
    ) -> Product:
        product = Product(
            name=name,
            price=Decimal(price),
            billing_period=billing_period,
            category=category,
            is_active=is_active,
        )
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    return _make


@pytest.fixture
def identity():
    return Identity(user_id=uuid.uuid4(), email="miner@example.com")


@pytest.fixture
def sessions(identity):
    return SessionProvider(identity)


@pytest.fixture
def store(session):
    """Real SQL cart store wrapped in a Mock so tests can inject failures and count calls."""
    return Mock(wraps=CartRepository(session))


@pytest.fixture
def catalog(session):
    return Mock(wraps=ProductRepository(session))


@pytest.fixture
def engine(sessions, store, catalog):
    engine = CartEngine(sessions, store, catalog)
    yield engine
    engine.close()


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client"""
    client = Mock()

    # Mock table operations
    table_mock = Mock()
    table_mock.select.return_value = table_mock
    table_mock.insert.return_value = table_mock
    table_mock.update.return_value = table_mock
    table_mock.delete.return_value = table_mock
    table_mock.upsert.return_value = table_mock
    table_mock.eq.return_value = table_mock
    table_mock.order.return_value = table_mock
    table_mock.limit.return_value = table_mock
    table_mock.execute.return_value = Mock(data=[])

    client.table.return_value = table_mock
    client.auth.get_session.return_value = None

    return client


@pytest.fixture
def sample_line_row(identity):
    """Cart line as returned by PostgREST"""
    return {
        "id": str(uuid.uuid4()),
        "user_id": str(identity.user_id),
        "product_id": str(uuid.uuid4()),
        "quantity": 2,
        "price_at_addition": "19.95",
        "product_name": "Solo Miner Membership",
        "billing_period": "monthly",
        "created_at": "2025-01-01T00:00:00+00:00",
        "updated_at": "2025-01-01T00:00:00+00:00",
    }


@pytest.fixture
def sample_product_row():
    """Product as returned by PostgREST"""
    return {
        "id": str(uuid.uuid4()),
        "name": "S19 Rental Slot",
        "description": "One week of hashrate",
        "price": "149.00",
        "billing_period": "one-time",
        "category": "rental",
        "is_active": True,
        "created_at": "2025-01-01T00:00:00+00:00",
    }
