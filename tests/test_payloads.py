"""Unit tests for the order payload builders."""

import json
from decimal import Decimal

import pytest

from checkout_service.models import BasketItem, BasketSnapshot, ShippingAddress
from checkout_service.payloads import prepare_order_details, prepare_order_items

ADDRESS = ShippingAddress(street="123 Main St.", city="Kent", state="OH", country="United States", zipcode="44240")


def _basket(*items):
    return BasketSnapshot(id=1, buyer_id="buyer", items=list(items))


def test_order_details_literal():
    basket = _basket(BasketItem(id=1, catalog_item_id=7, quantity=1, unit_price=Decimal("19.99")))

    assert prepare_order_details(basket, ADDRESS) == (
        '{"address": "123 Main St., Kent, OH, United States, 44240", "items": [7], "totalPrice": 19.99}'
    )


def test_order_details_lists_catalog_ids_in_basket_order():
    basket = _basket(
        BasketItem(id=1, catalog_item_id=9, quantity=2, unit_price=Decimal("5.00")),
        BasketItem(id=2, catalog_item_id=3, quantity=1, unit_price=Decimal("1.25")),
    )

    payload = json.loads(prepare_order_details(basket, ADDRESS))

    assert payload["items"] == [9, 3]
    assert payload["totalPrice"] == 11.25


def test_order_details_is_deterministic():
    basket = _basket(BasketItem(id=1, catalog_item_id=7, quantity=3, unit_price=Decimal("0.10")))

    assert prepare_order_details(basket, ADDRESS) == prepare_order_details(basket.model_copy(deep=True), ADDRESS)


def test_order_items_literal_keeps_insertion_order():
    assert prepare_order_items({"3": 2, "5": 1}) == (
        '{"order_details": [{"id":3, "quantity":2}, {"id":5, "quantity":1}]}'
    )


def test_order_items_is_valid_json():
    payload = json.loads(prepare_order_items({"10": 0, "2": 4}))

    assert payload == {"order_details": [{"id": 10, "quantity": 0}, {"id": 2, "quantity": 4}]}


def test_order_items_empty_mapping():
    assert prepare_order_items({}) == '{"order_details": []}'


def test_order_items_rejects_non_numeric_ids():
    with pytest.raises(ValueError):
        prepare_order_items({"abc": 1})


def test_payloads_are_logged(caplog):
    with caplog.at_level("INFO", logger="checkout_service.payloads"):
        prepare_order_items({"1": 1})

    assert '{"order_details": [{"id":1, "quantity":1}]}' in caplog.text


@pytest.mark.parametrize("unit_price, total_text", [("20.00", "20.00"), ("10.50", "10.50"), ("0.10", "0.10")])
def test_order_details_total_keeps_two_decimals(unit_price, total_text):
    basket = _basket(BasketItem(id=1, catalog_item_id=7, quantity=1, unit_price=Decimal(unit_price)))

    order_details = prepare_order_details(basket, ADDRESS)

    assert order_details.endswith(f'"totalPrice": {total_text}}}')
    assert json.loads(order_details)["totalPrice"] == float(unit_price)


def test_order_details_keeps_non_ascii_address():
    address = ShippingAddress(street="Domkloster 4", city="Köln", state="NW", country="Deutschland", zipcode="50667")
    basket = _basket(BasketItem(id=1, catalog_item_id=7, quantity=1, unit_price=Decimal("1.00")))

    order_details = prepare_order_details(basket, address)

    assert '"address": "Domkloster 4, Köln, NW, Deutschland, 50667"' in order_details
    assert json.loads(order_details)["address"] == str(address)
