"""
stores.py — In-Memory Basket and Order Stores

Process-local stand-ins for the basket and order subsystems. They implement
the protocols from `ports.py` and let the service run (and be tested) without
a database. A single `InMemoryBasketStore` serves both the basket mutations
and the basket read model; `InMemoryOrderStore` converts baskets into orders.
"""

import threading
from dataclasses import dataclass, field
from decimal import Decimal
from itertools import count
from typing import Dict, List, Mapping

from .errors import BasketNotFound, EmptyBasketOnCheckout
from .logging_config import get_logger
from .models import BasketItem, BasketSnapshot, ShippingAddress

log = get_logger(__name__)


class InMemoryBasketStore:
    """Keeps baskets keyed by id, one basket per buyer."""

    def __init__(self):
        self._lock = threading.RLock()
        self._baskets: Dict[int, BasketSnapshot] = {}
        self._ids = count(1)

    def get_or_create_basket_for_user(self, owner_key: str) -> BasketSnapshot:
        with self._lock:
            for basket in self._baskets.values():
                if basket.buyer_id == owner_key:
                    return basket.model_copy(deep=True)
            basket = BasketSnapshot(id=next(self._ids), buyer_id=owner_key)
            self._baskets[basket.id] = basket
            log.info(f"[Basket: {basket.id}] Created basket for buyer {owner_key}.")
            return basket.model_copy(deep=True)

    def get_basket(self, basket_id: int) -> BasketSnapshot:
        with self._lock:
            basket = self._baskets.get(basket_id)
            if basket is None:
                raise BasketNotFound(basket_id)
            return basket.model_copy(deep=True)

    def find_basket(self, basket_id: int):
        with self._lock:
            basket = self._baskets.get(basket_id)
            return basket.model_copy(deep=True) if basket is not None else None

    def add_item(self, basket_id: int, catalog_item_id: int, unit_price, quantity: int = 1) -> BasketItem:
        """Adds a product to the basket, or raises the quantity if it is already there."""
        with self._lock:
            basket = self._baskets.get(basket_id)
            if basket is None:
                raise BasketNotFound(basket_id)
            for item in basket.items:
                if item.catalog_item_id == catalog_item_id:
                    item.quantity += quantity
                    return item.model_copy()
            next_id = max((item.id for item in basket.items), default=0) + 1
            item = BasketItem(
                id=next_id,
                catalog_item_id=catalog_item_id,
                quantity=quantity,
                unit_price=Decimal(str(unit_price)),
            )
            basket.items.append(item)
            return item.model_copy()

    def set_quantities(self, basket_id: int, quantities: Mapping[str, int]) -> None:
        with self._lock:
            basket = self._baskets.get(basket_id)
            if basket is None:
                raise BasketNotFound(basket_id)
            for item in basket.items:
                key = str(item.id)
                if key in quantities:
                    item.quantity = quantities[key]
            basket.items = [item for item in basket.items if item.quantity > 0]

    def delete_basket(self, basket_id: int) -> None:
        with self._lock:
            if self._baskets.pop(basket_id, None) is None:
                raise BasketNotFound(basket_id)


@dataclass(frozen=True)
class StoredOrder:
    id: int
    buyer_id: str
    shipping_address: ShippingAddress
    items: List[BasketItem] = field(default_factory=list)


class InMemoryOrderStore:
    """Creates orders from baskets held by an `InMemoryBasketStore`."""

    def __init__(self, baskets: InMemoryBasketStore):
        self._baskets = baskets
        self._lock = threading.Lock()
        self._orders: Dict[int, StoredOrder] = {}
        self._ids = count(1)

    @property
    def orders(self) -> List[StoredOrder]:
        with self._lock:
            return list(self._orders.values())

    def create_order(self, basket_id: int, shipping_address: ShippingAddress) -> int:
        basket = self._baskets.find_basket(basket_id)
        # A deleted basket is treated like an empty one
        if basket is None or basket.is_empty():
            raise EmptyBasketOnCheckout(basket_id)

        with self._lock:
            order = StoredOrder(
                id=next(self._ids),
                buyer_id=basket.buyer_id,
                shipping_address=shipping_address,
                items=list(basket.items),
            )
            self._orders[order.id] = order
        log.info(f"[Basket: {basket_id}] Order {order.id} created with {len(order.items)} item(s).")
        return order.id
