"""
errors.py — Error Types of the Checkout Service

    CheckoutError
     ├── CheckoutValidationError   malformed submitted items, nothing mutated
     ├── EmptyBasketOnCheckout     expected business condition, redirect to basket
     ├── BasketNotFound            unknown basket id in a basket/order store
     └── CheckoutMutationError     fatal failure of a basket or order mutation
"""


class CheckoutError(Exception):
    """Base class for all checkout errors."""


class CheckoutValidationError(CheckoutError):
    """Raised when submitted basket items fail structural validation."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = list(errors or [message])


class EmptyBasketOnCheckout(CheckoutError):
    """Raised by the order service when a basket has no items left to order."""

    def __init__(self, basket_id):
        super().__init__(f"Basket with id {basket_id} is empty.")
        self.basket_id = basket_id


class BasketNotFound(CheckoutError):
    def __init__(self, basket_id):
        super().__init__(f"Basket with id {basket_id} not found.")
        self.basket_id = basket_id


class CheckoutMutationError(CheckoutError):
    """
    Raised when updating, ordering or deleting a basket fails for a reason other
    than an empty basket. Steps applied before the failure are not rolled back.
    """

    def __init__(self, step, basket_id, cause):
        super().__init__(f"Checkout step '{step}' failed for basket {basket_id}: {cause}")
        self.step = step
        self.basket_id = basket_id
        self.cause = cause
