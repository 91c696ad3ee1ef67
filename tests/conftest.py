"""Shared fixtures: in-memory database, repositories and scripted Odoo clients."""

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from pricesync.application.services.sync_service import OdooSyncService
from pricesync.domain.models import Product, SyncLog
from pricesync.domain.repositories.product_repository import SaveOptions
from pricesync.domain.schemas.sync import OdooResponse
from pricesync.infrastructure.database import Base
from pricesync.infrastructure.repositories.product_repository import SQLAlchemyProductRepository
from pricesync.infrastructure.repositories.sync_log_repository import SQLAlchemySyncLogRepository


class RecordingDispatcher:
    """Collects product ids instead of pushing them."""

    def __init__(self):
        self.pushed = []

    def enqueue_push(self, product_id):
        self.pushed.append(product_id)


class StubOdooClient:
    """Odoo client whose answers are set by the test.

    ``outcomes`` maps a SKU to an OdooResponse or an exception to raise;
    other SKUs get ``default``. ``records`` is what ``fetch_products``
    returns (or raises, when it is an exception).
    """

    def __init__(self):
        self.default = OdooResponse(
            ok=True,
            payload={"reference": "stub"},
            response={"status": "success"},
            message="Odoo cost updated.",
        )
        self.outcomes = {}
        self.records = []
        self.pushed = []
        self.fetch_calls = []
        self.closed = False

    def close(self):
        self.closed = True

    def update_product_cost(self, sku, cost, sale_price, currency):
        self.pushed.append((sku, cost, sale_price, currency))
        outcome = self.outcomes.get(sku, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def fetch_products(self, filters=None, options=None):
        self.fetch_calls.append((filters, options))
        if isinstance(self.records, Exception):
            raise self.records
        return list(self.records)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def product_repo(db, dispatcher):
    return SQLAlchemyProductRepository(db, Product, dispatcher=dispatcher, default_currency="USD")


@pytest.fixture
def log_repo(db):
    return SQLAlchemySyncLogRepository(db, SyncLog)


@pytest.fixture
def stub_client():
    return StubOdooClient()


@pytest.fixture
def sync_service(stub_client, product_repo, log_repo):
    return OdooSyncService(client=stub_client, products=product_repo, logs=log_repo, default_currency="USD")


@pytest.fixture
def make_product(product_repo):
    """Store a product without running the sync hook (status stays ``never``)."""

    def _make(sku="SKU-1001", name=None, cost="10", markup="50", currency="USD", **attributes):
        product = Product(
            sku=sku,
            name=name or sku,
            cost_price=Decimal(cost),
            markup_percent=Decimal(markup),
            currency=currency,
            **attributes,
        )
        return product_repo.save(product, SaveOptions.internal())

    return _make


@pytest.fixture
def sync_logs(db):
    def _logs(**filters):
        return db.query(SyncLog).filter_by(**filters).order_by(SyncLog.id).all()

    return _logs
