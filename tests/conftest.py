"""Pytest configuration and fixtures"""
import os
from unittest.mock import AsyncMock, Mock

import pytest

# Set test environment variables
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test_key")
os.environ.setdefault("TELEGRAM_TOKEN", "123456:test_token")

from kalipos.models import CatalogItem, Order  # noqa: E402


@pytest.fixture
def mock_supabase_client():
    """Mock async Supabase client: chained builders, awaitable execute()."""
    client = Mock()

    table_mock = Mock()
    for method in ("select", "insert", "update", "delete", "upsert", "eq",
                   "or_", "limit", "order", "ilike"):
        getattr(table_mock, method).return_value = table_mock
    table_mock.execute = AsyncMock(return_value=Mock(data=[], count=0))

    client.table.return_value = table_mock
    return client


@pytest.fixture
def sponge():
    return CatalogItem(item_name="Sponge", category="Cleaning", default_supplier="Metro")


@pytest.fixture
def catalog(sponge):
    return [
        sponge,
        CatalogItem(item_name="Sponge Scrub", category="Cleaning", default_supplier="Makro"),
        CatalogItem(item_name="Pizza Box 33", category="Box", default_supplier="Metro"),
        CatalogItem(item_name="Mozzarella", category="Cheese", default_supplier="Dairy Co"),
    ]


@pytest.fixture
def order_repo():
    """OrderRepository fake that records every header and line batch."""
    repo = Mock()
    repo.headers = []
    repo.line_batches = []

    async def create_header(order_number, telegram_user_id, status="New"):
        repo.headers.append(order_number)
        return Order(
            id=f"order-{len(repo.headers)}",
            order_number=order_number,
            telegram_user_id=telegram_user_id,
            status=status,
        )

    async def add_lines(order_id, lines):
        repo.line_batches.append((order_id, lines))
        return []

    repo.create_header = AsyncMock(side_effect=create_header)
    repo.add_lines = AsyncMock(side_effect=add_lines)
    repo.get_recent_by_user = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def catalog_repo(catalog):
    """CatalogRepository fake over the ``catalog`` fixture."""
    repo = Mock()

    async def get_by_name(item_name):
        return next((item for item in catalog if item.item_name == item_name), None)

    repo.get_by_name = AsyncMock(side_effect=get_by_name)
    repo.get_all = AsyncMock(return_value=list(catalog))
    repo.get_by_category = AsyncMock(return_value=[])
    repo.search = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def cart_repo():
    repo = Mock()
    repo.create = AsyncMock(return_value="cart-1")
    repo.get_by_id = AsyncMock(return_value=None)
    repo.get_by_user = AsyncMock(return_value=[])
    repo.delete = AsyncMock(return_value=True)
    repo.duplicate = AsyncMock(return_value="cart-2")
    repo.set_template = AsyncMock(return_value=True)
    return repo

