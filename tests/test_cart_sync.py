# tests/test_cart_sync.py

import pytest
from pydantic import ValidationError

from app.core.exceptions import InvalidArgument
from app.schemas.cart import (
    CATALOG, VIRTUAL, CartLine, CatalogItem, ItemKey, VirtualItem, item_from_wire, parse_item_key
)
from app.services.cart import plan_sync


def catalog_line(product_id: int, quantity: int) -> CartLine:
    return CartLine(item=CatalogItem(product_id=product_id), quantity=quantity)


def package_line(virtual_id: str, quantity: int) -> CartLine:
    return CartLine(item=VirtualItem(virtual_id=virtual_id, name="Pack", price=10), quantity=quantity)


def test_plan_inserts_lines_missing_on_server():
    plan = plan_sync([catalog_line(9, 1), package_line("pkg-3", 2)], {})

    assert plan.catalog == {9: 1}
    assert [(item.virtual_id, quantity) for item, quantity in plan.virtual] == [("pkg-3", 2)]


def test_plan_keeps_larger_server_quantity():
    plan = plan_sync([catalog_line(7, 2)], {ItemKey(CATALOG, 7): 5})
    assert plan.is_empty()


def test_plan_equal_quantities_are_left_alone():
    plan = plan_sync([package_line("pkg-3", 2)], {ItemKey(VIRTUAL, "pkg-3"): 2})
    assert plan.is_empty()


def test_plan_raises_to_larger_local_quantity():
    plan = plan_sync([catalog_line(7, 6)], {ItemKey(CATALOG, 7): 5})
    assert plan.catalog == {7: 6}


def test_plan_ignores_server_only_lines():
    plan = plan_sync([catalog_line(1, 1)], {ItemKey(CATALOG, 2): 3, ItemKey(VIRTUAL, "pkg-1"): 1})
    assert plan.catalog == {1: 1}
    assert plan.virtual == []


def test_plan_collapses_local_duplicates_to_max():
    plan = plan_sync([catalog_line(7, 2), catalog_line(7, 4), catalog_line(7, 1)], {})
    assert plan.catalog == {7: 4}


def test_plan_does_not_confuse_numeric_and_virtual_ids():
    plan = plan_sync([catalog_line(5, 1), package_line("pkg-5", 1)], {ItemKey(VIRTUAL, "pkg-5"): 3})
    assert plan.catalog == {5: 1}
    assert plan.virtual == []


# --- Item keys ---

@pytest.mark.parametrize("raw, expected", [
    (7, ItemKey(CATALOG, 7)),
    ("7", ItemKey(CATALOG, 7)),
    ("pkg-3", ItemKey(VIRTUAL, "pkg-3")),
    ("build-ab12", ItemKey(VIRTUAL, "build-ab12")),
])
def test_parse_item_key(raw, expected):
    assert parse_item_key(raw) == expected


@pytest.mark.parametrize("raw", [0, -1, "0", "abc", "pkg-", "build-", "", True])
def test_parse_item_key_rejects(raw):
    with pytest.raises(InvalidArgument):
        parse_item_key(raw)


def test_item_from_wire_builds_tagged_items():
    assert isinstance(item_from_wire(5), CatalogItem)
    virtual = item_from_wire("pkg-5", "Pack", 12.5, "p.png")
    assert isinstance(virtual, VirtualItem)
    assert virtual.key == ItemKey(VIRTUAL, "pkg-5")


def test_virtual_item_requires_known_prefix():
    with pytest.raises(ValidationError):
        VirtualItem(virtual_id="gift-1", name="Gift", price=1)


def test_cart_line_wire_round_trip_keeps_kind():
    line = CartLine.from_wire({"id": "build-x1", "name": "Custom PC Build", "price": 1234.5, "image": None, "quantity": 1})
    assert line.key == ItemKey(VIRTUAL, "build-x1")
    assert line.to_wire()["id"] == "build-x1"
    assert line.subtotal == 1234.5


def test_cart_line_wire_rejects_numeric_string_id():
    with pytest.raises(InvalidArgument):
        CartLine.from_wire({"id": "5", "quantity": 1})
