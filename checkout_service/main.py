"""
main.py — FastAPI Entry Point for the Checkout Service

This module provides the REST API interface of the basket checkout. It resolves
the basket owner for every request, hands the checkout to the workflow and maps
the workflow outcome to an HTTP response.

Responsibilities:
    • Show the basket that is about to be checked out
    • Accept the checkout form and redirect to the confirmation or back to the basket
    • Map fatal checkout failures to a typed 500 response
    • Provide system health information
"""

from typing import Any, Optional

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse

from .clients import OrderDetailsProcessorClient, OrderItemsReserverPublisher
from .config import Settings
from .dispatcher import NotificationDispatcher
from .errors import CheckoutMutationError
from .identity import IdentityResolver
from .logging_config import get_logger, setup_logging
from .models import CheckoutOutcome
from .stores import InMemoryBasketStore, InMemoryOrderStore
from .workflow import CheckoutWorkflow

log = get_logger(__name__)

SUCCESS_PAGE = "/basket/checkout/success"
BASKET_PAGE = "/basket"


def build_workflow(settings: Settings, basket_store=None, order_store=None, dispatcher=None) -> CheckoutWorkflow:
    """
    Wires the checkout workflow with its collaborators.

    Missing stores default to the in-memory implementations; a missing
    dispatcher is built from the configured downstream endpoints.
    """
    basket_store = basket_store or InMemoryBasketStore()
    order_store = order_store or InMemoryOrderStore(basket_store)
    if dispatcher is None:
        dispatcher = NotificationDispatcher(
            OrderDetailsProcessorClient(settings.order_details_processor_url, timeout=settings.http_timeout),
            OrderItemsReserverPublisher(
                settings.order_items_reserver_broker_url,
                settings.order_items_queue,
                timeout=settings.queue_timeout,
            ),
        )
    return CheckoutWorkflow(
        settings=settings,
        basket_service=basket_store,
        order_service=order_store,
        basket_view_service=basket_store,
        dispatcher=dispatcher,
    )


def create_app(settings: Optional[Settings] = None, workflow: Optional[CheckoutWorkflow] = None) -> FastAPI:
    """
    Creates the FastAPI application.

    Args:
        settings (Settings, optional): Service settings, read from the environment when omitted.
        workflow (CheckoutWorkflow, optional): Pre-wired workflow, e.g. for tests.

    Returns:
        FastAPI: The configured application.
    """
    settings = settings or Settings.from_env()
    workflow = workflow or build_workflow(settings)
    identity = IdentityResolver(settings)

    app = FastAPI(title="Basket Checkout Service")
    app.state.settings = settings
    app.state.workflow = workflow

    @app.on_event("shutdown")
    def on_shutdown():
        workflow.dispatcher.close()
        log.info("Checkout service stopped.")

    @app.exception_handler(CheckoutMutationError)
    async def checkout_mutation_failed(request: Request, exc: CheckoutMutationError):
        log.critical(f"[Basket: {exc.basket_id}] Checkout aborted in step {exc.step}: {exc.cause}")
        return JSONResponse(
            status_code=500,
            content={"detail": "Checkout failed.", "step": exc.step, "basketId": exc.basket_id},
        )

    @app.exception_handler(RequestValidationError)
    async def request_invalid(request: Request, exc: RequestValidationError):
        log.warning(f"Rejected request to {request.url.path}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"detail": [err["msg"] for err in exc.errors()]})

    @app.get("/basket/checkout")
    def get_checkout(request: Request):
        """
        Returns the basket of the current owner.

        A first-time anonymous caller receives the basket cookie with this response.
        """
        owner = identity.resolve(request)
        basket = workflow.on_load(owner.owner_key)
        response = JSONResponse(content=basket.model_dump(mode="json"))
        return identity.persist(response, owner)

    @app.post("/basket/checkout")
    def post_checkout(request: Request, items: Any = Body(...)):
        """
        Checks out the basket of the current owner.

        Args:
            items (Any): Basket lines as `{"id": <int>, "quantity": <int>}`.
                Validation is done by the workflow so that malformed items end
                in a 400 without touching the basket.

        Returns:
            303 redirect to the confirmation page on success, 303 redirect to the
            basket page when the basket turned out empty, 400 on invalid items.
        """
        owner = identity.resolve(request)
        result = workflow.on_submit(owner.owner_key, items)

        if result.outcome is CheckoutOutcome.VALIDATION_FAILURE:
            response = JSONResponse(status_code=400, content={"detail": result.errors})
        elif result.outcome is CheckoutOutcome.EMPTY_BASKET_REDIRECT:
            response = RedirectResponse(BASKET_PAGE, status_code=303)
        else:
            response = RedirectResponse(f"{SUCCESS_PAGE}?orderId={result.order_id}", status_code=303)
        return identity.persist(response, owner)

    @app.get(SUCCESS_PAGE)
    def checkout_success(orderId: Optional[int] = None):
        return {"status": "Order confirmed", "orderId": orderId}

    @app.get("/health")
    def health_check():
        """
        Simple health check endpoint.

        Returns:
            dict: A basic JSON object indicating service availability.
        """
        return {"status": "ok"}

    return app


def get_app() -> FastAPI:
    """Application factory for `uvicorn --factory checkout_service.main:get_app`."""
    settings = Settings.from_env()
    setup_logging(settings.log_level, settings.log_file)
    log.info("Checkout service starting...")
    return create_app(settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(get_app(), host="0.0.0.0", port=8000)
