"""
workflow.py — Core Orchestration Logic for Basket Checkout

This module turns a customer's basket into an order and notifies the
downstream consumers. All collaborator calls happen in a fixed sequence.

Workflow Overview:
1. Load the owner's basket and validate the submitted items
2. Apply the submitted quantities to the basket
3. Create the order (an empty basket ends the checkout with a redirect)
4. Delete the basket
5. Build the order details and order items payloads
6. Notify the order details processor (HTTP) and the order items reserver (MQ)

Failure policy:
    - Invalid input stops the checkout before anything is mutated.
    - Failures of steps 2 to 4 are fatal and raised as CheckoutMutationError.
      Steps that already ran are not compensated.
    - Notification failures are logged and never change the outcome.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterable, List, Union

from pydantic import TypeAdapter, ValidationError

from .config import Settings
from .dispatcher import NotificationDispatcher
from .errors import BasketNotFound, CheckoutMutationError, CheckoutValidationError, EmptyBasketOnCheckout
from .logging_config import get_logger
from .models import (
    BasketView,
    CheckoutOutcome,
    CheckoutResult,
    SubmittedItem,
    build_quantity_update,
)
from .payloads import prepare_order_details, prepare_order_items
from .ports import BasketService, BasketViewService, OrderService

log = get_logger(__name__)

_submitted_items_adapter = TypeAdapter(List[SubmittedItem])


@dataclass(frozen=True)
class OrderCreated:
    order_id: int


@dataclass(frozen=True)
class EmptyBasket:
    message: str


OrderCreationResult = Union[OrderCreated, EmptyBasket]


def validate_submitted_items(submitted_items) -> List[SubmittedItem]:
    """
    Validates the raw items submitted with the checkout form.

    Args:
        submitted_items: Iterable of dicts or `SubmittedItem` instances.

    Returns:
        List[SubmittedItem]: The validated items.

    Raises:
        CheckoutValidationError: If the items are structurally invalid.
    """
    if submitted_items is None:
        raise CheckoutValidationError("no items submitted")
    try:
        return _submitted_items_adapter.validate_python(list(submitted_items))
    except (ValidationError, TypeError) as e:
        errors = [err["msg"] for err in e.errors()] if isinstance(e, ValidationError) else [str(e)]
        raise CheckoutValidationError("invalid basket items", errors) from e


class CheckoutWorkflow:
    """
    Orchestrates checkout for one basket at a time.

    Concurrent checkouts of the same basket id are serialized with an
    in-process lock; a second run then finds the basket gone and ends on the
    empty-basket redirect instead of creating a duplicate order.
    """

    def __init__(
            self,
            settings: Settings,
            basket_service: BasketService,
            order_service: OrderService,
            basket_view_service: BasketViewService,
            dispatcher: NotificationDispatcher,
    ):
        self.settings = settings
        self.basket_service = basket_service
        self.order_service = order_service
        self.basket_view_service = basket_view_service
        self.dispatcher = dispatcher
        self._locks: Dict[int, list] = {}
        self._locks_guard = threading.Lock()

    def on_load(self, owner_key: str) -> BasketView:
        """Returns the owner's basket, creating an empty one if necessary."""
        basket = self.basket_view_service.get_or_create_basket_for_user(owner_key)
        return BasketView.from_snapshot(basket)

    def on_submit(self, owner_key: str, submitted_items: Iterable) -> CheckoutResult:
        """Checks out the basket currently owned by `owner_key`."""
        basket = self.basket_view_service.get_or_create_basket_for_user(owner_key)
        return self.checkout(owner_key, basket.id, submitted_items)

    def checkout(self, owner_key: str, basket_id: int, submitted_items: Iterable) -> CheckoutResult:
        """
        Executes the complete checkout for a single basket.

        Args:
            owner_key (str): User name or anonymous token owning the basket.
            basket_id (int): Id of the basket to check out.
            submitted_items (Iterable): Raw items of the checkout form, each with
                `id` and `quantity`.

        Returns:
            CheckoutResult: SUCCESS with the order id, EMPTY_BASKET_REDIRECT, or
            VALIDATION_FAILURE with the validation messages.

        Raises:
            CheckoutMutationError: If updating the basket, creating the order or
                deleting the basket fails for any other reason.
        """
        log_prefix = f"[Basket: {basket_id}]"
        log.info(f"{log_prefix} Starting checkout for owner {owner_key}.")

        # --- 1. Load basket and validate input ---
        basket = self.basket_view_service.get_or_create_basket_for_user(owner_key)
        if basket.id != basket_id:
            log.warning(f"{log_prefix} Basket does not belong to owner {owner_key} (owner basket: {basket.id}).")
            return CheckoutResult(
                outcome=CheckoutOutcome.VALIDATION_FAILURE,
                basket_id=basket_id,
                errors=[f"basket {basket_id} does not belong to the current owner"],
            )
        try:
            items = validate_submitted_items(submitted_items)
            quantities = build_quantity_update(items)
        except CheckoutValidationError as e:
            log.warning(f"{log_prefix} Rejected checkout: {e} {e.errors}")
            return CheckoutResult(outcome=CheckoutOutcome.VALIDATION_FAILURE, basket_id=basket_id, errors=e.errors)
        except ValueError as e:
            log.warning(f"{log_prefix} Rejected checkout: {e}")
            return CheckoutResult(outcome=CheckoutOutcome.VALIDATION_FAILURE, basket_id=basket_id, errors=[str(e)])

        address = self.settings.shipping_address

        with self._basket_lock(basket_id):
            # --- 2. Update quantities ---
            try:
                self.basket_service.set_quantities(basket_id, quantities)
            except BasketNotFound:
                # Already converted by an earlier run; order creation reports the empty basket
                log.warning(f"{log_prefix} Basket vanished before quantity update.")
            except Exception as e:
                log.error(f"{log_prefix} Step set_quantities failed: {e}")
                raise CheckoutMutationError("set_quantities", basket_id, e) from e

            # --- 3. Create order ---
            result = self._create_order(basket_id, address)
            if isinstance(result, EmptyBasket):
                log.warning(result.message)
                return CheckoutResult(
                    outcome=CheckoutOutcome.EMPTY_BASKET_REDIRECT,
                    basket_id=basket_id,
                    message=result.message,
                )
            log.info(f"{log_prefix} Order {result.order_id} created.")

            updated_basket = self.basket_view_service.get_or_create_basket_for_user(owner_key)

            # --- 4. Delete basket ---
            self._mutate("delete_basket", basket_id, self.basket_service.delete_basket, basket_id)

        # --- 5. Build payloads ---
        order_items = prepare_order_items(quantities)
        order_details = prepare_order_details(updated_basket, address)

        # --- 6. Notify downstream consumers ---
        report = self.dispatcher.dispatch(order_details, order_items, log_prefix=log_prefix)
        log.info(
            f"{log_prefix} Checkout complete (order {result.order_id}, "
            f"http={report.http_delivered}, queue={report.queue_delivered})."
        )

        return CheckoutResult(
            outcome=CheckoutOutcome.SUCCESS,
            basket_id=basket_id,
            order_id=result.order_id,
            dispatch=report,
        )

    def _create_order(self, basket_id, address) -> OrderCreationResult:
        try:
            return OrderCreated(order_id=self.order_service.create_order(basket_id, address))
        except EmptyBasketOnCheckout as e:
            return EmptyBasket(message=str(e))
        except Exception as e:
            log.error(f"[Basket: {basket_id}] Order creation failed: {e}")
            raise CheckoutMutationError("create_order", basket_id, e) from e

    @staticmethod
    def _mutate(step, basket_id, operation, *args):
        try:
            operation(*args)
        except Exception as e:
            log.error(f"[Basket: {basket_id}] Step {step} failed: {e}")
            raise CheckoutMutationError(step, basket_id, e) from e

    @contextmanager
    def _basket_lock(self, basket_id):
        with self._locks_guard:
            entry = self._locks.setdefault(basket_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[basket_id]
