"""Order payload builder: basket + checkout request -> order payload."""

import math
from typing import Optional

from .errors import MalformedBasketError
from .schemas import Basket, CheckoutRequest, OrderPayload


def calculate_total(basket: Basket) -> float:
    """Sum the prices of every item in the basket.

    math.fsum is exactly rounded, so the total does not depend on item order.
    """
    return math.fsum(item.price for item in basket.items)


def build_order_payload(checkout_request: CheckoutRequest, basket: Optional[Basket]) -> OrderPayload:
    """Derive the order payload published on checkout.

    The request fields are applied first and the basket fields second, so the
    basket wins on a name collision. ``totalPrice`` is always recomputed.

    Args:
        checkout_request: The validated checkout request.
        basket: The user's basket snapshot.

    Returns:
        OrderPayload: The merged payload with its computed total.

    Raises:
        MalformedBasketError: If there is no basket or it has no items collection.
    """
    if basket is None:
        raise MalformedBasketError("No basket to check out", step="build", user_name=checkout_request.user_name)
    if basket.items is None:
        raise MalformedBasketError(
            f"Basket of user {basket.user_name} has no items collection",
            step="build",
            user_name=basket.user_name,
        )

    merged = checkout_request.model_dump(by_alias=True)
    merged.update(basket.to_record())
    merged["totalPrice"] = calculate_total(basket)
    return OrderPayload.model_validate(merged)
