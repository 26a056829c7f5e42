"""
ports.py — Interfaces of the Collaborators Used by Checkout

Basket storage, order storage and the basket read model live outside the
checkout core. The workflow only talks to them through these protocols.
"""

from typing import Mapping, Protocol

from .models import BasketSnapshot, ShippingAddress


class BasketService(Protocol):
    def set_quantities(self, basket_id: int, quantities: Mapping[str, int]) -> None:
        """Applies new quantities by line-item id and drops lines that reach zero."""
        ...

    def delete_basket(self, basket_id: int) -> None: ...


class OrderService(Protocol):
    def create_order(self, basket_id: int, shipping_address: ShippingAddress) -> int:
        """
        Persists an order for the basket and returns its id.

        Raises:
            EmptyBasketOnCheckout: If the basket has no items, or no longer exists.
        """
        ...


class BasketViewService(Protocol):
    def get_or_create_basket_for_user(self, owner_key: str) -> BasketSnapshot: ...
