"""FastAPI server implementation for the Order Service."""

from contextlib import asynccontextmanager
from typing import Optional

from confluent_kafka.admin import AdminClient
from fastapi import APIRouter, Depends, FastAPI, Query, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import __version__
from .config import Settings
from .errors import OrderNotFoundError, OrderValidationError, PersistenceError
from .logger import logger
from .metrics import PrometheusMetrics
from .producer import OrderProducer
from .schemas import CreateOrderRequest, Order, OrderStats, UpdateStatusRequest
from .service import OrderService
from .store import InMemoryOrderStore, OrderStore

router = APIRouter(prefix="/api/orders", tags=["orders"])
health_router = APIRouter()


def get_service(request: Request) -> OrderService:
    """Resolve the order service attached to the running app."""
    return request.app.state.order_service


@router.get("", response_model=list[Order])
def list_orders(
    request: Request,
    page: int = 1,
    page_size: Optional[int] = Query(None, alias="pageSize"),
    service: OrderService = Depends(get_service),
):
    """List orders newest first.

    Args:
        page: 1-based page number (default 1)
        page_size: Orders per page (default from settings)

    Returns:
        The orders on the requested page
    """
    if page_size is None:
        page_size = request.app.state.settings.default_page_size
    return service.list_orders(page=page, page_size=page_size)


@router.get("/stats", response_model=OrderStats)
def get_stats(service: OrderService = Depends(get_service)):
    """Aggregate order statistics; also refreshes the active orders gauge."""
    return service.get_stats()


@router.get("/{order_id}", response_model=Order)
def get_order(order_id: int, service: OrderService = Depends(get_service)):
    """Get one order with its items."""
    return service.get_order(order_id)


@router.post("", response_model=Order, status_code=status.HTTP_201_CREATED)
def create_order(
    body: CreateOrderRequest,
    request: Request,
    response: Response,
    service: OrderService = Depends(get_service),
):
    """Create an order.

    Args:
        body: Customer id and at least one item

    Returns:
        The persisted order, with a Location header pointing at it
    """
    order = service.create_order(body.customer_id, body.items)
    response.headers["Location"] = str(request.url_for("get_order", order_id=order.id))
    return order


@router.put("/{order_id}/status", status_code=status.HTTP_204_NO_CONTENT)
def update_order_status(
    order_id: int,
    body: UpdateStatusRequest,
    service: OrderService = Depends(get_service),
):
    """Change the status of an order."""
    service.update_order_status(order_id, body.status)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@health_router.get("/health")
def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy"}


@health_router.get("/health/ready")
def readiness_check(request: Request):
    """Check if the service is ready to accept traffic.

    Returns:
        dict: Readiness status plus store and Kafka state (Kafka is None when disabled).
    """
    service: OrderService = request.app.state.order_service
    store_ok = service.store.ping()
    kafka_ok = None
    if request.app.state.settings.kafka_bootstrap_servers:
        kafka_ok = _check_kafka_connection(request.app.state.settings.kafka_bootstrap_servers)
    ready = store_ok and kafka_ok is not False
    return {"status": "ready" if ready else "not_ready", "store": store_ok, "kafka": kafka_ok}


@health_router.get("/metrics")
def metrics(request: Request):
    """Expose Prometheus metrics."""
    sink: PrometheusMetrics = request.app.state.metrics
    return Response(content=sink.render(), media_type=sink.content_type)


def _check_kafka_connection(bootstrap_servers: str) -> bool:
    """Check if Kafka connection is available.

    Returns:
        bool: True if Kafka is accessible, False otherwise.
    """
    try:
        admin = AdminClient({"bootstrap.servers": bootstrap_servers})
        return bool(admin.list_topics(timeout=5))
    except Exception as e:
        logger.error(f"Kafka connection failed: {e}")
        return False


async def _not_found_handler(request: Request, exc: OrderNotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


async def _validation_handler(request: Request, exc: OrderValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc), "errors": jsonable_encoder(exc.errors)},
    )


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Rejected {request.method} {request.url.path}: {len(exc.errors())} validation error(s)")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())},
    )


async def _persistence_handler(request: Request, exc: PersistenceError):
    logger.opt(exception=exc).error(f"Store failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Order store failure"})


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[OrderStore] = None,
    metrics: Optional[PrometheusMetrics] = None,
    producer: Optional[OrderProducer] = None,
) -> FastAPI:
    """Build the FastAPI application and wire the order service.

    Args:
        settings: Runtime settings, read from the environment when omitted
        store: Order store, an in-memory store when omitted
        metrics: Metrics sink, a fresh Prometheus registry when omitted
        producer: Event producer, built from settings when Kafka is configured

    Returns:
        FastAPI: The configured application
    """
    settings = settings or Settings.from_env()
    metrics = metrics or PrometheusMetrics()
    if producer is None and settings.kafka_bootstrap_servers:
        producer = OrderProducer(settings.kafka_bootstrap_servers, client_id=settings.service_name)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage the lifecycle of the FastAPI application."""
        logger.info(f"Order service started (events {'enabled' if producer else 'disabled'})")
        yield
        logger.info("Shutting down order service...")
        if producer:
            producer.close()
        logger.info("Shutdown complete")

    app = FastAPI(title="Order Service", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.order_service = OrderService(
        store=store if store is not None else InMemoryOrderStore(),
        metrics=metrics,
        producer=producer,
        max_page_size=settings.max_page_size,
    )

    app.add_exception_handler(OrderNotFoundError, _not_found_handler)
    app.add_exception_handler(OrderValidationError, _validation_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(PersistenceError, _persistence_handler)

    app.include_router(health_router)
    app.include_router(router)
    logger.info("API router mounted.")
    return app


app = create_app()
