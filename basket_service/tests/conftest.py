"""Test fixtures for the basket service tests."""

import pytest
from fastapi.testclient import TestClient
from loguru import logger

from basket_service.checkout import CheckoutOrchestrator
from basket_service.config import ServiceConfig
from basket_service.errors import PublishError, StoreError
from basket_service.schemas import Basket, PublishReceipt
from basket_service.server import app, state
from basket_service.store import InMemoryBasketStore


class RecordingStore(InMemoryBasketStore):
    """In-memory store that records every call made to it."""

    def __init__(self, table_name: str, fail_on: tuple = ()) -> None:
        super().__init__(table_name)
        self.calls: list[tuple] = []
        self.fail_on = set(fail_on)

    def _record(self, operation: str, *args) -> None:
        self.calls.append((operation, *args))
        if operation in self.fail_on:
            raise StoreError(f"{operation} throttled")

    def get_one(self, user_name):
        self._record("get_one", user_name)
        return super().get_one(user_name)

    def get_all(self):
        self._record("get_all")
        return super().get_all()

    def put(self, basket):
        self._record("put", basket.user_name)
        return super().put(basket)

    def delete(self, user_name):
        self._record("delete", user_name)
        return super().delete(user_name)


class FakePublisher:
    """Publisher that keeps published events in memory."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.events = []
        self.attempts = 0

    def publish(self, event, key=None):
        self.attempts += 1
        if self.fail:
            raise PublishError("broker unavailable", step="publish")
        self.events.append(event)
        return PublishReceipt(messageId=event.message_id, busName=event.bus_name, partition=0, offset=len(self.events) - 1)


@pytest.fixture
def service_config():
    """Configuration with every required setting present."""
    return ServiceConfig(
        table_name="basket",
        event_source="com.swn.basket.checkoutbasket",
        event_detail_type="CheckoutBasket",
        event_bus_name="SwnEventBus",
    )


@pytest.fixture
def store():
    """Empty recording basket store."""
    return RecordingStore("basket")


@pytest.fixture
def publisher():
    """Publisher that accepts every event."""
    return FakePublisher()


@pytest.fixture
def orchestrator(store, publisher, service_config):
    """Checkout orchestrator wired to the in-memory fakes."""
    return CheckoutOrchestrator(store, publisher, service_config)


@pytest.fixture
def alice_basket():
    """Basket of alice with two items."""
    return Basket(userName="alice", items=[{"price": 10}, {"price": 5}])


@pytest.fixture
def test_client(store, publisher, service_config):
    """Test client for the FastAPI app with fake adapters installed."""
    state.configure(service_config, store, publisher)
    yield TestClient(app)
    state.__init__()


@pytest.fixture
def make_orchestrator(service_config):
    """Factory building an orchestrator over freshly created fakes.

    Usage: ``store, publisher, orchestrator = make_orchestrator(fail_on=("delete",))``
    """

    def _make(fail_on: tuple = (), publish_fails: bool = False, baskets: tuple = ()):
        store = RecordingStore("basket", fail_on=fail_on)
        for basket in baskets:
            InMemoryBasketStore.put(store, basket)
        publisher = FakePublisher(fail=publish_fails)
        return store, publisher, CheckoutOrchestrator(store, publisher, service_config)

    return _make


@pytest.fixture
def log_records():
    """Capture loguru records of level WARNING and above."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="WARNING")
    yield records
    logger.remove(handler_id)
