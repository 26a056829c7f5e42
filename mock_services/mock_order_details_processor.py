"""
mock_order_details_processor.py — Mock Implementation of the Order Details Processor (REST API)

This module provides a simulated Order Details Processor for local runs of the
checkout service. It exposes a small FastAPI application that accepts the
order details posted after every successful checkout.

Simulation Scenarios:
    • Successful processing (HTTP 202)
    • Processor failure (HTTP 500) when the address contains "FAIL"
    • Slow processing when the address contains "SLOW" (exceeds client timeouts)

Endpoints:
    POST /api/order-details — Receives one order details document.
    GET  /api/order-details — Lists the documents received so far.

Port:
    Default: 8002 (HTTP)
"""

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from typing import List
import logging
import time
import uuid

app = FastAPI(title="Mock Order Details Processor")
logging.basicConfig(level=logging.INFO)

received_orders = []


class OrderDetails(BaseModel):
    """
    Represents the order details payload sent by the checkout service.

    Attributes:
        address (str): Shipping address as a single line.
        items (List[int]): Catalog item ids of the order.
        totalPrice (float): Total price of the order.
    """
    address: str
    items: List[int]
    totalPrice: float = Field(..., ge=0)


@app.post("/api/order-details", status_code=202)
def process_order_details(details: OrderDetails):
    """
    Accepts an order details document.

    The outcome is scenario-driven by the address:
        - contains "FAIL" → HTTP 500
        - contains "SLOW" → answers after 10 seconds
        - otherwise       → HTTP 202 with a processing id

    Returns:
        dict: processingId (str) and receivedAt (UTC timestamp).

    Raises:
        HTTPException(500): If a processor failure is simulated.
    """
    logging.info(f"[ODP] Order details received: {len(details.items)} item(s), total {details.totalPrice}")

    if "FAIL" in details.address:
        logging.warning("[ODP] Simulating processor failure.")
        raise HTTPException(status_code=500, detail={"errorCode": "processor_failure"})

    if "SLOW" in details.address:
        logging.info("[ODP] Simulating slow processing...")
        time.sleep(10)

    received_orders.append(details)
    return {
        "processingId": f"odp_{uuid.uuid4()}",
        "receivedAt": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
    }


@app.get("/api/order-details")
def list_order_details():
    """Returns all order details received since startup."""
    return [details.model_dump() for details in received_orders]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8002)
