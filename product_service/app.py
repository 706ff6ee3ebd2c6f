"""
ProductService: HTTP API for the catalog. Optionally runs the stock
decrement consumer in the same process (CONSUME_EVENTS).
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from broker.channel import EventChannel, RabbitEventChannel
from common import init_db, parse_id, setup_logging
from common.api import error_response, positive_int, register_error_handlers
from common.envelope import envelope, list_envelope, product_view
from common.errors import ValidationError
from common.models import ProductCreateRequest
from product_service.catalog import CatalogService, ProductValidator, validator_for
from product_service.config import CONSUME_EVENTS, DB_PATH, PRODUCT_VALIDATION
from product_service.consumer import build_reconciler, run_consumer

setup_logging("product-service")
logger = logging.getLogger(__name__)


def create_app(
    db_path: str = DB_PATH,
    channel: EventChannel | None = None,
    validator: ProductValidator | None = None,
    consume_events: bool = CONSUME_EVENTS,
) -> FastAPI:
    channel = channel if channel is not None else RabbitEventChannel()
    if validator is None:
        validator = validator_for(PRODUCT_VALIDATION)
    catalog = CatalogService(db_path, channel, validator)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(db_path)
        connection = None
        if consume_events:
            connection = await run_consumer(build_reconciler(db_path, channel))
        yield
        if connection is not None:
            await connection.close()
        if isinstance(channel, RabbitEventChannel):
            await channel.close()

    app = FastAPI(title="Product Service", lifespan=lifespan)
    app.state.catalog = catalog
    register_error_handlers(app)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "product-service"}

    @app.get("/products")
    async def index(page: str | None = None, limit: str | None = None):
        products, pagination = catalog.list_products(
            positive_int(page, 1, "page"),
            positive_int(limit, 10, "limit"),
        )
        return list_envelope([product_view(p) for p in products], pagination)

    @app.get("/product/{product_id}")
    async def show(product_id: str):
        try:
            canonical_id = parse_id(product_id)
        except ValueError:
            return error_response(400, "Invalid product ID format")

        product = catalog.get_product(canonical_id)
        if product is None:
            return error_response(404, "Not found")
        return envelope(product_view(product))

    @app.post("/product")
    async def create(request: Request):
        try:
            payload = await request.json()
            body = ProductCreateRequest.model_validate(payload)
        except ValueError:
            raise ValidationError() from None

        product = await catalog.create_product(body.name, body.price, body.quantity)
        return JSONResponse(envelope(product_view(product)), status_code=201)

    return app


app = create_app()
