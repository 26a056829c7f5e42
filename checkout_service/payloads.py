"""
payloads.py — Serialized Order Payloads for Downstream Consumers

Two JSON documents are derived from a finished checkout:

    order details  →  {"address": "...", "items": [<catalogItemId>, ...], "totalPrice": <total>}
                      consumed by the order details processor (HTTP)
    order items    →  {"order_details": [{"id":<id>, "quantity":<q>}, ...]}
                      consumed by the order items reserver (message queue)

Both builders are pure: identical input yields identical text. Each payload is
logged at INFO level for auditing.
"""

import json
from typing import Mapping

from .logging_config import get_logger
from .models import BasketSnapshot, ShippingAddress

log = get_logger(__name__)


def prepare_order_details(basket: BasketSnapshot, address: ShippingAddress) -> str:
    """
    Builds the order details payload.

    Args:
        basket (BasketSnapshot): Basket state before deletion.
        address (ShippingAddress): Shipping address of the order.

    Returns:
        str: JSON text with the address, the catalog item ids in basket order
        and the total price written with two decimals (e.g. 20.00).
    """
    order_details = '{"address": %s, "items": %s, "totalPrice": %s}' % (
        json.dumps(str(address), ensure_ascii=False),
        json.dumps([item.catalog_item_id for item in basket.items]),
        str(basket.total()),
    )
    log.info(order_details)
    return order_details


def prepare_order_items(quantities: Mapping[str, int]) -> str:
    """
    Builds the order items payload from the quantity update.

    Entries keep the insertion order of `quantities`; ids and quantities are
    written as decimal integers.

    Raises:
        ValueError: If a key is not an integer id.
    """
    entries = [
        '{"id":%d, "quantity":%d}' % (int(item_id), int(quantity))
        for item_id, quantity in quantities.items()
    ]
    order_items = '{"order_details": [' + ", ".join(entries) + "]}"
    log.info(order_items)
    return order_items
