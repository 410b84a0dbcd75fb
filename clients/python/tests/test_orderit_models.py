from __future__ import annotations

from decimal import Decimal

import pytest

from orderit_client_sdk.models import (
    Distribution,
    Invoice,
    Order,
    User,
    extract_id,
    is_placeholder_name,
    looks_like_identifier,
    unwrap_list,
)
from orderit_client_sdk.order_status import OrderStatus


def test_order_accepts_backend_field_variants() -> None:
    order = Order.model_validate(
        {
            "orderId": 17,
            "storeId": "store-1",
            "sellerId": "user-1",
            "orderDate": "2024-05-01T10:00:00",
            "status": "Delivered",
            "comments": " leave at the back ",
            "details": [
                {"productName": "Cola", "productId": "p-1", "quantity": 3, "unitPrice": "2.50"},
                {"name": "Water", "productId": "p-2", "quantity": 2.0, "price": 1.1},
            ],
            "somethingNew": True,
        }
    )

    assert order.id == "17"
    assert order.salesperson_id == "user-1"
    assert order.status is OrderStatus.DELIVERED
    assert order.notes == "leave at the back"
    assert order.created_at.year == 2024
    assert [line.product_name for line in order.items] == ["Cola", "Water"]
    assert order.items[0].subtotal == Decimal("7.50")
    assert order.items[1].price == Decimal("1.1")
    assert order.total_units == 5


def test_unknown_status_and_null_money_default() -> None:
    order = Order.model_validate({"id": "o-1", "status": "archived", "total": None, "tax": ""})
    assert order.status is OrderStatus.PENDING
    assert order.total == Decimal("0")
    assert order.tax == Decimal("0")


def test_negative_quantity_is_rejected() -> None:
    with pytest.raises(ValueError):
        Order.model_validate({"id": "o-1", "items": [{"productId": "p-1", "quantity": -1}]})


def test_invoice_pod_aliases() -> None:
    invoice = Invoice.model_validate({"invoiceId": "inv-1", "orderId": "o-1", "podUrl": "imagenes/a.png"})
    assert invoice.id == "inv-1"
    assert invoice.pod == "imagenes/a.png"


@pytest.mark.parametrize(
    ("payload", "row", "col"),
    [
        ({"xPosition": 3, "yPosition": 4}, 3, 4),
        ({"Xposition": 15, "Yposition": -2}, 9, 0),
        ({"row": "7", "col": 8.9}, 7, 8),
        ({"xPosition": None}, 0, 0),
    ],
)
def test_distribution_positions_are_clamped(payload, row, col) -> None:
    distribution = Distribution.model_validate({"productId": "p-1", **payload})
    assert (distribution.row, distribution.col) == (row, col)


def test_user_full_name() -> None:
    assert User.model_validate({"firstName": "Ana", "lastName": "Ruiz"}).full_name == "Ana Ruiz"
    assert User.model_validate({"firstName": "Ana"}).full_name == "Ana"


def test_unwrap_list_envelopes() -> None:
    assert unwrap_list([1, 2]) == [1, 2]
    assert unwrap_list({"data": [1]}) == [1]
    assert unwrap_list({"value": [2]}) == [2]
    assert unwrap_list(None) == []
    with pytest.raises(ValueError):
        unwrap_list({"id": "o-1"})


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        (42, "42"),
        (" o-1 ", "o-1"),
        ({"id": "o-2"}, "o-2"),
        ({"invoiceId": 9}, "9"),
        ({"data": {"orderId": "o-3"}}, "o-3"),
        ({"message": "ok"}, None),
        (None, None),
        (True, None),
    ],
)
def test_extract_id(payload, expected) -> None:
    assert extract_id(payload) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("3f2504e0-4f89-11d3-9a0c-0305e82c3301", True),
        ("3F2504E0-4F89-11D3-9A0C-0305E82C3301", True),
        ("12345", True),
        ("Tienda Centro", False),
        ("", False),
        (None, False),
    ],
)
def test_looks_like_identifier(value, expected) -> None:
    assert looks_like_identifier(value) is expected


def test_placeholder_names() -> None:
    assert is_placeholder_name("")
    assert is_placeholder_name("—")
    assert is_placeholder_name("128")
    assert not is_placeholder_name("Tienda Centro")
