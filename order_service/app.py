"""
OrderService: HTTP API to place and read orders. Admission checks stock via
the product service and publishes a stock decrement on the product events
exchange.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from broker.channel import EventChannel, RabbitEventChannel
from common import init_db, parse_id, setup_logging
from common.api import error_response, positive_int, register_error_handlers
from common.envelope import envelope, list_envelope, order_view
from common.errors import ServiceError
from common.models import OrderCreateRequest
from order_service.config import DB_PATH
from order_service.orders import OrderService
from order_service.product_client import ProductServiceClient, StockQuery

setup_logging("order-service")
logger = logging.getLogger(__name__)


def create_app(
    db_path: str = DB_PATH,
    products: StockQuery | None = None,
    channel: EventChannel | None = None,
) -> FastAPI:
    channel = channel if channel is not None else RabbitEventChannel()
    service = OrderService(db_path, products or ProductServiceClient(), channel)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(db_path)
        yield
        if isinstance(channel, RabbitEventChannel):
            await channel.close()

    app = FastAPI(title="Order Service", lifespan=lifespan)
    app.state.orders = service
    register_error_handlers(app)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "order-service"}

    @app.get("/orders")
    async def index(page: str | None = None, limit: str | None = None):
        result = await service.list_orders(
            positive_int(page, 1, "page"),
            positive_int(limit, 10, "limit"),
        )
        views = [order_view(o.order, o.product) for o in result.orders]
        return list_envelope(views, result.pagination)

    @app.get("/orders/{order_id}")
    async def show(order_id: str):
        try:
            canonical_id = parse_id(order_id)
        except ValueError:
            logger.warning("Invalid UUID provided for order lookup: %r", order_id)
            return error_response(400, "Invalid order ID format")

        enriched = await service.get_order(canonical_id)
        if enriched is None:
            return error_response(404, "Order not found")
        return envelope(order_view(enriched.order, enriched.product))

    @app.post("/order")
    async def create(request: Request):
        try:
            payload = await request.json()
        except ValueError:
            return error_response(400, "Invalid input data")

        order_request = OrderCreateRequest.from_payload(payload)
        try:
            order = await service.create_order(
                order_id=order_request.order_id,
                product_id=order_request.product_id,
                customer_name=order_request.customer_name or "",
                quantity_ordered=order_request.quantity_ordered,
            )
        except ServiceError:
            raise
        except Exception:
            logger.exception("Order creation failed - unexpected error (payload=%r)", payload)
            return error_response(500, "Internal server error")

        enriched = await service.get_order(order.order_id)
        product = enriched.product if enriched is not None else None
        return JSONResponse(envelope(order_view(order, product)), status_code=201)

    return app


app = create_app()
