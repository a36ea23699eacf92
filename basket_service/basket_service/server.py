"""FastAPI server implementation for the Basket Service."""

from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Any, Optional

from confluent_kafka.admin import AdminClient
from fastapi import Body, FastAPI, Request
from fastapi.responses import JSONResponse

from .checkout import CheckoutOrchestrator
from .config import ServiceConfig
from .errors import (
    BasketServiceError,
    ConfigurationError,
    EventPublishError,
    InvalidRequestError,
    MalformedBasketError,
    PublishError,
    StoreError,
)
from .logger import logger
from .producer import CheckoutEventProducer, EventPublisher
from .schemas import Basket, ErrorResponse, OperationResponse
from .store import BasketStore, InMemoryBasketStore

ERROR_STATUS = {
    InvalidRequestError: HTTPStatus.BAD_REQUEST,
    MalformedBasketError: HTTPStatus.UNPROCESSABLE_ENTITY,
    StoreError: HTTPStatus.SERVICE_UNAVAILABLE,
    PublishError: HTTPStatus.BAD_GATEWAY,
    EventPublishError: HTTPStatus.BAD_GATEWAY,
    ConfigurationError: HTTPStatus.INTERNAL_SERVER_ERROR,
}


class BasketServiceState:
    """Class to manage basket service state."""

    def __init__(self) -> None:
        """Initialize an unconfigured state; the lifespan fills it in."""
        self.config: Optional[ServiceConfig] = None
        self.store: Optional[BasketStore] = None
        self.publisher: Optional[EventPublisher] = None
        self.orchestrator: Optional[CheckoutOrchestrator] = None

    def configure(self, config: ServiceConfig, store: BasketStore, publisher: EventPublisher) -> None:
        """Wire the adapters and the checkout orchestrator together."""
        self.config = config
        self.store = store
        self.publisher = publisher
        self.orchestrator = CheckoutOrchestrator(store, publisher, config)

    def require_store(self) -> BasketStore:
        if self.store is None:
            raise ConfigurationError("Basket store is not configured")
        return self.store

    def require_orchestrator(self) -> CheckoutOrchestrator:
        if self.orchestrator is None:
            raise ConfigurationError("Checkout is not configured")
        return self.orchestrator


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage the lifecycle of the FastAPI application."""
    config = ServiceConfig.from_env()
    producer = CheckoutEventProducer(
        bootstrap_servers=config.bootstrap_servers,
        client_id=config.client_id,
        timeout=config.publish_timeout,
    )
    state.configure(config, InMemoryBasketStore(config.table_name), producer)
    logger.info(
        f"Basket service started | table={config.table_name} | bus={config.event_bus_name} | "
        f"bootstrap_servers={config.bootstrap_servers}"
    )

    yield

    logger.info("Shutting down basket service...")
    producer.close()
    logger.info("Shutdown complete")


# Initialize FastAPI app and state
app = FastAPI(title="Basket Service", lifespan=lifespan)
state = BasketServiceState()


@app.exception_handler(BasketServiceError)
async def basket_service_error_handler(request: Request, exc: BasketServiceError):
    """Render a domain error as a structured error response."""
    status = ERROR_STATUS.get(type(exc), HTTPStatus.INTERNAL_SERVER_ERROR)
    logger.error(
        f"Operation failed | method={request.method} | path={request.url.path} | kind={exc.kind} | "
        f"step={exc.step} | user_name={exc.user_name} | error={exc.message}"
    )
    body = ErrorResponse(errorMsg=exc.message, kind=exc.kind, step=exc.step)
    return JSONResponse(status_code=status, content=body.model_dump(by_alias=True))


def _success(method: str, body: Any = None, warning: Optional[dict] = None) -> OperationResponse:
    return OperationResponse(message=f'Successfully finished operation: "{method}"', body=body, warning=warning)


@app.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy"}


@app.get("/health/ready")
def readiness_check():
    """Check if the service is ready to handle requests."""
    if state.config is None:
        return {"status": "not ready", "kafka": "unconfigured"}
    try:
        admin = AdminClient({"bootstrap.servers": state.config.bootstrap_servers})
        cluster_metadata = admin.list_topics(timeout=10)
        if cluster_metadata is not None:
            return {"status": "ready", "kafka": "connected"}
    except Exception as e:
        logger.error(f"Readiness check failed: {e}")
    return {"status": "not ready", "kafka": "disconnected"}


@app.get("/basket", response_model=OperationResponse)
def list_baskets():
    """List every stored basket.

    Returns:
        OperationResponse: All baskets in their stored form.
    """
    baskets = state.require_store().get_all()
    logger.info(f"Listed baskets | count={len(baskets)}")
    return _success("GET", [basket.to_record() for basket in baskets])


@app.get("/basket/{user_name}", response_model=OperationResponse)
def get_basket(user_name: str):
    """Get the basket of a user.

    Args:
        user_name: Owner of the basket

    Returns:
        OperationResponse: The stored basket, or an empty basket if none is stored
    """
    basket = state.require_store().get_one(user_name)
    if basket is None:
        basket = Basket.empty(user_name)
    return _success("GET", basket.to_record())


@app.post("/basket", response_model=OperationResponse)
def create_basket(basket: Basket):
    """Create or overwrite the basket of ``basket.userName``.

    Args:
        basket: The full basket to store

    Returns:
        OperationResponse: The store acknowledgement
    """
    ack = state.require_store().put(basket)
    return _success("POST", ack.model_dump(by_alias=True))


@app.delete("/basket/{user_name}", response_model=OperationResponse)
def delete_basket(user_name: str):
    """Delete the basket of a user.

    Args:
        user_name: Owner of the basket

    Returns:
        OperationResponse: The store acknowledgement
    """
    ack = state.require_store().delete(user_name)
    return _success("DELETE", ack.model_dump(by_alias=True))


@app.post("/basket/checkout", response_model=OperationResponse)
def checkout_basket(checkout_request: dict[str, Any] = Body(...)):
    """Check out a basket and publish the resulting order event.

    Args:
        checkout_request: ``userName`` plus any checkout metadata

    Returns:
        OperationResponse: The publish receipt, with a warning if the basket
        could not be cleared after publishing
    """
    result = state.require_orchestrator().checkout(checkout_request)
    return _success("POST", result.receipt.model_dump(by_alias=True), warning=result.clear_error)
