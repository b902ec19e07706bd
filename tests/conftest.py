import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from utils.db_utils import ProductStore


@pytest.fixture
def store():
    # In-memory SQLite shared across sessions
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    product_store = ProductStore(engine)
    product_store.create_tables()
    yield product_store
    engine.dispose()
