"""Tests for the Supabase-backed cart store and catalog"""
import uuid
from decimal import Decimal
from unittest.mock import Mock

import httpx
import pytest
from postgrest.exceptions import APIError

from app.core.errors import StaleLineError, StoreError, SyncFailure
from app.core.session import SessionProvider
from app.repositories.supabase_repo import (
    SupabaseCartRepository,
    SupabaseProductRepository,
)
from app.schemas.product import ProductRead
from app.services.cart_engine import CartEngine, EngineState


@pytest.fixture
def table(mock_supabase_client):
    return mock_supabase_client.table.return_value


@pytest.fixture
def repo(mock_supabase_client):
    return SupabaseCartRepository(mock_supabase_client)


@pytest.fixture
def product(sample_product_row):
    return ProductRead.model_validate(sample_product_row)


def test_list_lines(repo, mock_supabase_client, table, identity, sample_line_row):
    table.execute.return_value = Mock(data=[sample_line_row])

    lines = repo.list_lines(identity.user_id)

    mock_supabase_client.table.assert_called_with("cart_items")
    table.eq.assert_called_with("user_id", str(identity.user_id))
    table.order.assert_called_with("created_at", desc=True)
    assert len(lines) == 1
    assert lines[0].quantity == 2
    assert lines[0].price_at_addition == Decimal("19.95")


def test_upsert_inserts_new_line(repo, table, identity, product, sample_line_row):
    table.execute.return_value = Mock(data=[sample_line_row])

    repo.upsert_line(identity.user_id, product, 2)

    row = table.upsert.call_args.args[0]
    assert row["price_at_addition"] == "149.00"
    assert row["billing_period"] == "one-time"
    assert table.upsert.call_args.kwargs == {
        "on_conflict": "user_id,product_id",
        "ignore_duplicates": True,
    }
    table.update.assert_not_called()


def test_upsert_existing_only_updates_quantity(repo, table, identity, product, sample_line_row):
    table.execute.side_effect = [Mock(data=[]), Mock(data=[sample_line_row])]

    line = repo.upsert_line(identity.user_id, product, 2)

    changes = table.update.call_args.args[0]
    assert set(changes) == {"quantity", "updated_at"}
    assert changes["quantity"] == 2
    assert line.quantity == 2


def test_conditional_upsert_existing_is_stale(repo, table, identity, product):
    table.execute.return_value = Mock(data=[])

    with pytest.raises(StaleLineError):
        repo.upsert_line(identity.user_id, product, 1, conditional=True)

    table.update.assert_not_called()


def test_malformed_rows_become_store_errors(repo, table, identity, sample_line_row):
    table.execute.return_value = Mock(data=[{**sample_line_row, "quantity": 0}])

    with pytest.raises(StoreError):
        repo.list_lines(identity.user_id)


def test_engine_reports_malformed_rows(mock_supabase_client, table, identity, sample_line_row):
    table.execute.return_value = Mock(data=[{**sample_line_row, "quantity": 0}])
    engine = CartEngine(
        SessionProvider(identity),
        SupabaseCartRepository(mock_supabase_client),
        SupabaseProductRepository(mock_supabase_client),
    )

    result = engine.load()

    assert isinstance(result.error, SyncFailure)
    assert engine.state is EngineState.UNLOADED


def test_update_quantity_with_expected(repo, table, identity, sample_line_row):
    table.execute.return_value = Mock(data=[sample_line_row])
    line_id = uuid.UUID(sample_line_row["id"])

    repo.update_quantity(identity.user_id, line_id, 2, expected_quantity=1)

    table.eq.assert_any_call("id", str(line_id))
    table.eq.assert_any_call("user_id", str(identity.user_id))
    table.eq.assert_called_with("quantity", 1)


def test_update_quantity_no_rows_is_stale(repo, table, identity):
    table.execute.return_value = Mock(data=[])

    with pytest.raises(StaleLineError):
        repo.update_quantity(identity.user_id, uuid.uuid4(), 2, expected_quantity=1)


def test_delete_line_scoped_to_user(repo, table, identity):
    line_id = uuid.uuid4()

    repo.delete_line(identity.user_id, line_id)

    table.delete.assert_called_once()
    table.eq.assert_any_call("id", str(line_id))
    table.eq.assert_any_call("user_id", str(identity.user_id))


@pytest.mark.parametrize(
    "error",
    [
        APIError({"message": "permission denied", "code": "42501"}),
        httpx.ConnectError("connection refused"),
    ],
)
def test_transport_errors_become_store_errors(repo, table, identity, error):
    table.execute.side_effect = error

    with pytest.raises(StoreError):
        repo.delete_all_lines(identity.user_id)


def test_get_product(mock_supabase_client, table, sample_product_row):
    table.execute.return_value = Mock(data=[sample_product_row])

    product = SupabaseProductRepository(mock_supabase_client).get_product(
        uuid.UUID(sample_product_row["id"])
    )

    mock_supabase_client.table.assert_called_with("products")
    assert product.price == Decimal("149.00")
    assert product.category.value == "rental"


def test_get_product_missing(mock_supabase_client):
    assert SupabaseProductRepository(mock_supabase_client).get_product(uuid.uuid4()) is None
