"""
HTTP front door for the order pipeline.

`POST /order` validates the body as an Order and publishes it to the main
queue. The response only says the broker took the message; processing
happens asynchronously in the consumer.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from libs.python.rmq import BrokerHandle, MessagePublisherInterface, PublishError
from orders.src.config import OrdersConfig
from orders.src.metrics import ProducerMetrics
from orders.src.models import Order, PayloadError

logger = logging.getLogger(__name__)


def create_app(
    publisher: MessagePublisherInterface,
    metrics: Optional[ProducerMetrics] = None,
    handle: Optional[BrokerHandle] = None,
) -> FastAPI:
    """
    Factory function to create the producer FastAPI application.

    Args:
        publisher: Publisher bound to the order exchange
        metrics: Producer instruments (created from the global meter if omitted)
        handle: Broker handle to close on shutdown, if the app owns it
    """
    metrics = metrics or ProducerMetrics()

    @asynccontextmanager
    async def lifespan(app):
        metrics.mark_running()
        yield
        metrics.mark_stopped()
        publisher.shutdown()
        if handle is not None:
            handle.close()

    app = FastAPI(title="Orders Producer API", lifespan=lifespan)

    @app.middleware("http")
    async def record_request(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        metrics.record_request(
            request.method,
            request.url.path,
            response.status_code,
            time.perf_counter() - start,
        )
        return response

    @app.post("/order", status_code=202)
    async def submit_order(request: Request):
        body = await request.body()
        try:
            order = Order.parse(body)
        except PayloadError as e:
            logger.info("Rejected order request: %s", e)
            return JSONResponse(status_code=400, content={"error": str(e)})

        try:
            await run_in_threadpool(
                publisher.publish,
                OrdersConfig.MAIN_QUEUE,
                order.model_dump_json().encode("utf-8"),
            )
        except PublishError as e:
            metrics.record_publish(success=False)
            logger.error("Failed to publish order %s: %s", order.id, e)
            return JSONResponse(status_code=500, content={"error": "failed to publish order"})

        metrics.record_publish(success=True)
        logger.info("Order %s published (value=%s)", order.id, order.value)
        return {"status": "order accepted"}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    FastAPIInstrumentor.instrument_app(app)

    return app
