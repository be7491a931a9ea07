"""Tests for cart totals"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from app.models.product import BillingPeriod
from app.schemas.cart import CartLine
from app.services.cart_projection import cart_total, item_count, line_total, summarize


def _line(price, quantity, **kwargs):
    now = datetime.now(timezone.utc)
    return CartLine(
        id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        product_id=uuid.uuid4(),
        quantity=quantity,
        price_at_addition=Decimal(price),
        created_at=now,
        updated_at=now,
        **kwargs,
    )


def test_totals_example():
    lines = [_line("10", 2), _line("5", 3)]

    assert cart_total(lines) == Decimal("35")
    assert item_count(lines) == 5


def test_empty_cart():
    assert cart_total([]) == 0
    assert item_count([]) == 0


def test_line_total_keeps_cents():
    assert line_total(_line("19.95", 3)) == Decimal("59.85")


def test_summarize():
    lines = [
        _line("19.95", 1, product_name="Pro Membership", billing_period=BillingPeriod.MONTHLY),
        _line("149.00", 2, product_name="S19 Rental Slot"),
    ]

    summary = summarize(lines)

    assert summary.total_quantity == 3
    assert summary.total_price == Decimal("317.95")
    assert [item.line_total for item in summary.items] == [Decimal("19.95"), Decimal("298.00")]
    assert summary.items[0].billing_period == BillingPeriod.MONTHLY
