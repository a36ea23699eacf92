"""Tests for the checkout orchestrator."""

import json

import pytest

from basket_service.checkout import advance, parse_checkout_request
from basket_service.errors import EventPublishError, InvalidRequestError, MalformedBasketError, StoreError
from basket_service.schemas import Basket, CheckoutState


def test_checkout_publishes_order_and_clears_basket(orchestrator, store, publisher, alice_basket):
    """End-to-end checkout of alice's basket."""
    store.put(alice_basket)
    store.calls.clear()

    result = orchestrator.checkout({"userName": "alice", "address": "X"})

    assert result.state is CheckoutState.CLEARED
    assert result.completed
    assert result.clear_error is None
    assert len(publisher.events) == 1
    event = publisher.events[0]
    assert json.loads(event.detail) == {
        "userName": "alice",
        "address": "X",
        "items": [{"price": 10}, {"price": 5}],
        "totalPrice": 15,
    }
    assert event.source == "com.swn.basket.checkoutbasket"
    assert event.detail_type == "CheckoutBasket"
    assert event.bus_name == "SwnEventBus"
    assert result.receipt.message_id == event.message_id
    assert store.calls == [("get_one", "alice"), ("delete", "alice")]
    assert store.get_one("alice") is None


def test_checkout_without_basket_publishes_empty_order(orchestrator, publisher):
    result = orchestrator.checkout({"userName": "nobody"})

    assert result.completed
    detail = json.loads(publisher.events[0].detail)
    assert detail["totalPrice"] == 0
    assert detail["items"] == []


@pytest.mark.parametrize("request_body", [{}, {"userName": None}, {"userName": ""}, {"address": "X"}, None, "alice"])
def test_checkout_without_user_name_is_rejected_before_io(orchestrator, store, publisher, request_body):
    with pytest.raises(InvalidRequestError):
        orchestrator.checkout(request_body)

    assert store.calls == []
    assert publisher.attempts == 0


def test_publish_failure_keeps_basket(make_orchestrator, alice_basket):
    store, publisher, orchestrator = make_orchestrator(publish_fails=True, baskets=(alice_basket,))

    with pytest.raises(EventPublishError) as exc_info:
        orchestrator.checkout({"userName": "alice"})

    assert exc_info.value.step == "publish"
    assert exc_info.value.user_name == "alice"
    assert ("delete", "alice") not in store.calls
    assert store.get_one("alice") == alice_basket


def test_clear_failure_is_reported_as_warning(make_orchestrator, alice_basket, log_records):
    store, publisher, orchestrator = make_orchestrator(fail_on=("delete",), baskets=(alice_basket,))

    result = orchestrator.checkout({"userName": "alice"})

    assert result.state is CheckoutState.PUBLISHED
    assert not result.completed
    assert result.clear_error["kind"] == "BasketClearError"
    assert result.clear_error["step"] == "clear"
    assert result.receipt.message_id == publisher.events[0].message_id
    assert len(publisher.events) == 1
    assert store.get_one("alice") == alice_basket
    warnings = [r for r in log_records if r["level"].name == "WARNING"]
    assert len(warnings) == 1
    assert "step=clear" in warnings[0]["message"]
    assert "user_name=alice" in warnings[0]["message"]
    assert not [r for r in log_records if r["level"].name == "ERROR" and "Checkout failed" in r["message"]]


def test_fetch_failure_stops_checkout(make_orchestrator):
    store, publisher, orchestrator = make_orchestrator(fail_on=("get_one",))

    with pytest.raises(StoreError) as exc_info:
        orchestrator.checkout({"userName": "alice"})

    assert exc_info.value.step == "fetch"
    assert publisher.attempts == 0


def test_malformed_basket_is_left_untouched(orchestrator, store, publisher):
    store.put(Basket(userName="ivan", note="never initialized"))

    with pytest.raises(MalformedBasketError):
        orchestrator.checkout({"userName": "ivan"})

    assert publisher.attempts == 0
    assert ("delete", "ivan") not in store.calls
    assert store.get_one("ivan").note == "never initialized"


def test_total_is_recomputed_on_every_checkout(orchestrator, store, publisher):
    store.put(Basket(userName="judy", items=[{"price": 2}]))
    orchestrator.checkout({"userName": "judy"})
    store.put(Basket(userName="judy", items=[{"price": 7}, {"price": 1}]))
    orchestrator.checkout({"userName": "judy"})

    totals = [json.loads(event.detail)["totalPrice"] for event in publisher.events]
    assert totals == [2, 8]


def test_events_get_distinct_message_ids(orchestrator, publisher):
    orchestrator.checkout({"userName": "kim"})
    orchestrator.checkout({"userName": "kim"})
    assert publisher.events[0].message_id != publisher.events[1].message_id


def test_advance_rejects_skipped_steps():
    assert advance(CheckoutState.BUILT, CheckoutState.PUBLISHED) is CheckoutState.PUBLISHED
    with pytest.raises(RuntimeError):
        advance(CheckoutState.FETCHED, CheckoutState.PUBLISHED)
    with pytest.raises(RuntimeError):
        advance(CheckoutState.CLEARED, CheckoutState.RECEIVED)


def test_parse_checkout_request_keeps_metadata():
    request = parse_checkout_request({"userName": "lee", "cardInfo": "5554443322"})
    assert request.user_name == "lee"
    assert request.model_dump(by_alias=True) == {"userName": "lee", "cardInfo": "5554443322"}



def test_corrupt_stored_record_is_malformed(orchestrator, store, publisher):
    store._records["olga"] = {"userName": "olga", "items": [{"price": "free"}]}

    with pytest.raises(MalformedBasketError) as exc_info:
        orchestrator.checkout({"userName": "olga"})

    assert exc_info.value.step == "fetch"
    assert publisher.attempts == 0
    assert "olga" in store._records
