"""Checkout orchestration: fetch the basket, build the order, publish it, clear the basket."""

from collections.abc import Mapping
from typing import Any, Union

from pydantic import ValidationError

from .config import ServiceConfig
from .errors import BasketClearError, EventPublishError, InvalidRequestError, MalformedBasketError, PublishError, StoreError
from .logger import logger
from .payload import build_order_payload
from .producer import EventPublisher
from .schemas import Basket, CheckoutEvent, CheckoutRequest, CheckoutResult, CheckoutState
from .store import BasketStore

# Each state has exactly one successor; any failure leaves the sequence.
TRANSITIONS = {
    CheckoutState.RECEIVED: CheckoutState.FETCHED,
    CheckoutState.FETCHED: CheckoutState.BUILT,
    CheckoutState.BUILT: CheckoutState.PUBLISHED,
    CheckoutState.PUBLISHED: CheckoutState.CLEARED,
}


def advance(current: CheckoutState, target: CheckoutState) -> CheckoutState:
    """Move a checkout to its next state.

    Raises:
        RuntimeError: If ``target`` does not directly follow ``current``.
    """
    if TRANSITIONS.get(current) is not target:
        raise RuntimeError(f"Illegal checkout transition {current.value} -> {target.value}")
    return target


def parse_checkout_request(request: Union[CheckoutRequest, Mapping[str, Any], None]) -> CheckoutRequest:
    """Validate an inbound checkout request.

    Raises:
        InvalidRequestError: If the request is absent or has no usable userName.
    """
    if isinstance(request, CheckoutRequest):
        return request
    if not isinstance(request, Mapping):
        raise InvalidRequestError("Checkout request body must be a JSON object")
    try:
        return CheckoutRequest.model_validate(dict(request))
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise InvalidRequestError(f"Invalid checkout request, check fields: {fields}") from e


class CheckoutOrchestrator:
    """Runs the checkout of one basket at a time.

    The four steps are strictly serial and never retried. When the event is
    published but the basket cannot be deleted the checkout still succeeds,
    with state ``published`` and the clear failure attached to the result.
    Checkouts of the same user are not serialized against each other.

    Attributes:
        store: Basket store adapter.
        publisher: Event publisher adapter.
        config: Event routing settings.
    """

    def __init__(self, store: BasketStore, publisher: EventPublisher, config: ServiceConfig):
        self.store = store
        self.publisher = publisher
        self.config = config

    def checkout(self, request: Union[CheckoutRequest, Mapping[str, Any], None]) -> CheckoutResult:
        """Check out a user's basket.

        Args:
            request: Checkout request carrying at least ``userName``.

        Returns:
            CheckoutResult: Publish receipt and final state.

        Raises:
            InvalidRequestError: Before any I/O, if the request has no user name.
            StoreError: If the basket could not be fetched.
            MalformedBasketError: If the stored basket cannot be checked out.
            EventPublishError: If the event was not published; the basket is kept.
        """
        checkout_request = parse_checkout_request(request)
        user_name = checkout_request.user_name
        state = CheckoutState.RECEIVED
        logger.info(f"Checkout started | user_name={user_name}")

        try:
            basket = self.store.get_one(user_name)
        except StoreError as e:
            logger.error(f"Checkout failed | step=fetch | user_name={user_name} | error={e}")
            raise StoreError(f"Failed to fetch basket: {e.message}", step="fetch", user_name=user_name) from e
        except MalformedBasketError as e:
            logger.error(f"Checkout failed | step=fetch | user_name={user_name} | error={e}")
            raise
        if basket is None:
            logger.info(f"No stored basket, checking out an empty basket | user_name={user_name}")
            basket = Basket.empty(user_name)
        state = advance(state, CheckoutState.FETCHED)

        try:
            payload = build_order_payload(checkout_request, basket)
        except MalformedBasketError as e:
            logger.error(f"Checkout failed | step=build | user_name={user_name} | error={e}")
            raise
        state = advance(state, CheckoutState.BUILT)
        logger.debug(
            f"Order payload built | user_name={user_name} | items={len(payload.items)} | "
            f"total_price={payload.total_price} | fields={sorted(payload.model_dump(by_alias=True))}"
        )

        event = CheckoutEvent(
            source=self.config.event_source,
            detailType=self.config.event_detail_type,
            detail=payload.to_detail(),
            busName=self.config.event_bus_name,
        )
        try:
            receipt = self.publisher.publish(event, key=user_name)
        except PublishError as e:
            logger.error(
                f"Checkout failed | step=publish | user_name={user_name} | message_id={event.message_id} | error={e}"
            )
            raise EventPublishError(
                f"Checkout event was not published, basket kept: {e.message}", step="publish", user_name=user_name
            ) from e
        state = advance(state, CheckoutState.PUBLISHED)
        logger.info(f"Checkout event published | user_name={user_name} | message_id={receipt.message_id}")

        try:
            self.store.delete(user_name)
        except StoreError as e:
            clear_error = BasketClearError(
                f"Checkout event {receipt.message_id} was published but the basket could not be cleared: {e.message}",
                step="clear",
                user_name=user_name,
            )
            logger.warning(f"Checkout partially completed | step=clear | user_name={user_name} | error={e}")
            return CheckoutResult(userName=user_name, state=state, receipt=receipt, clearError=clear_error.to_dict())
        state = advance(state, CheckoutState.CLEARED)

        logger.info(f"Checkout completed | user_name={user_name} | total_price={payload.total_price}")
        return CheckoutResult(userName=user_name, state=state, receipt=receipt)
