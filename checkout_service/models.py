"""
models.py — Data Models for Basket Checkout

This module defines the data structures used during checkout. Pydantic models
validate the items submitted by the client and describe the basket read model;
small frozen dataclasses carry the outcome of a checkout run.

Models:
    - ShippingAddress: Value object for the delivery address.
    - BasketItem / BasketSnapshot: Read model of a basket as seen by checkout.
    - SubmittedItem: A single line of the checkout form (line-item id + quantity).
    - CheckoutOutcome / CheckoutResult / DispatchReport: Results of a checkout run.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_EVEN
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

CENTS = Decimal("0.01")


class ShippingAddress(BaseModel):
    """
    Delivery address of an order. Compared by value, has no identity.

    Attributes:
        street (str): Street and house number.
        city (str): City name.
        state (str): State or region code.
        country (str): Country name.
        zipcode (str): Postal code.
    """
    model_config = ConfigDict(frozen=True)

    street: str
    city: str
    state: str
    country: str
    zipcode: str

    def __str__(self):
        return ", ".join([self.street, self.city, self.state, self.country, self.zipcode])


class BasketItem(BaseModel):
    """
    Represents one line of a basket.

    Attributes:
        id (int): Line-item id inside the basket.
        catalog_item_id (int): Id of the catalog product.
        quantity (int): Ordered quantity, zero or more.
        unit_price (Decimal): Price of a single unit.
    """
    id: int
    catalog_item_id: int
    quantity: int = Field(..., ge=0)
    unit_price: Decimal = Field(..., ge=0)


class BasketSnapshot(BaseModel):
    """
    State of a basket at one point of the checkout.

    Attributes:
        id (int): Basket id.
        buyer_id (str): Owner key (user name or anonymous token).
        items (List[BasketItem]): Basket lines in insertion order.
    """
    id: int
    buyer_id: str
    items: List[BasketItem] = Field(default_factory=list)

    def total(self) -> Decimal:
        """Sum of unit price times quantity, rounded to cents (banker's rounding)."""
        amount = sum((item.unit_price * item.quantity for item in self.items), Decimal("0"))
        return amount.quantize(CENTS, rounding=ROUND_HALF_EVEN)

    def is_empty(self) -> bool:
        return not any(item.quantity > 0 for item in self.items)


class BasketView(BaseModel):
    """Basket as returned to the request layer when the checkout page loads."""
    id: int
    buyer_id: str
    items: List[BasketItem]
    total: Decimal

    @classmethod
    def from_snapshot(cls, basket: BasketSnapshot) -> "BasketView":
        return cls(id=basket.id, buyer_id=basket.buyer_id, items=basket.items, total=basket.total())


class SubmittedItem(BaseModel):
    """
    A single basket line as submitted with the checkout form.

    Attributes:
        id (int): Line-item id.
        quantity (int): New quantity. Must not be negative.
    """
    id: int
    quantity: int = Field(..., ge=0)


def build_quantity_update(items: List[SubmittedItem]) -> Mapping[str, int]:
    """
    Builds the read-only quantity mapping applied to the basket.

    Keys are the line-item ids as text; the submission order is kept.

    Raises:
        ValueError: If the same line-item id was submitted twice.
    """
    update = {}
    for item in items:
        key = str(item.id)
        if key in update:
            raise ValueError(f"duplicate basket item id {item.id}")
        update[key] = item.quantity
    return MappingProxyType(update)


class CheckoutOutcome(str, Enum):
    SUCCESS = "success"
    EMPTY_BASKET_REDIRECT = "empty_basket_redirect"
    VALIDATION_FAILURE = "validation_failure"


@dataclass(frozen=True)
class DispatchReport:
    """Per-channel result of the notification fan-out."""
    http_delivered: bool = False
    queue_delivered: bool = False


@dataclass(frozen=True)
class CheckoutResult:
    outcome: CheckoutOutcome
    basket_id: Optional[int] = None
    order_id: Optional[int] = None
    errors: List[str] = field(default_factory=list)
    dispatch: Optional[DispatchReport] = None
    message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is CheckoutOutcome.SUCCESS
