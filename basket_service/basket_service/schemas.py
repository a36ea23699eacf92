"""Pydantic models for baskets, checkout requests and checkout events."""

import uuid
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class BasketItem(BaseModel):
    """A single line item of a basket.

    Only the price is interpreted; every other product field (sku, quantity,
    color, ...) is kept as-is and passed through to the order payload.

    Attributes:
        price (float): Price of the line, must be non-negative.
    """

    price: float = Field(..., ge=0, allow_inf_nan=False, description="Line price")

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={"example": {"price": 9.99, "productId": "PROD-001", "quantity": 1}},
    )


class Basket(BaseModel):
    """A per-user shopping basket, keyed by user name.

    Attributes:
        user_name (str): Identity of the basket owner (``userName`` on the wire).
        items (list[BasketItem] | None): Line items; ``None`` means the record
            was stored without an items collection and cannot be checked out.
    """

    user_name: str = Field(..., alias="userName", min_length=1)
    items: Optional[list[BasketItem]] = None

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "userName": "swn",
                "items": [
                    {"price": 950.0, "productId": "602d2149e773f2a3990b47f5", "quantity": 2},
                    {"price": 480.0, "productId": "602d2149e773f2a3990b47f6", "quantity": 1},
                ],
            }
        },
    )

    @classmethod
    def empty(cls, user_name: str) -> "Basket":
        """Basket standing in for a user that has no stored record."""
        return cls(userName=user_name, items=[])

    def to_record(self) -> dict[str, Any]:
        """Serialize the basket to its stored / wire representation.

        Opaque fields keep their null values; only a missing items collection is left out.
        """
        return self.model_dump(by_alias=True, exclude={"items"} if self.items is None else None)


class CheckoutRequest(BaseModel):
    """Inbound checkout request.

    Anything besides ``userName`` (address, payment fields, ...) is opaque
    checkout metadata copied into the order payload.
    """

    user_name: str = Field(..., alias="userName", min_length=1)

    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "userName": "swn",
                "firstName": "swn",
                "lastName": "swn",
                "emailAddress": "ezozkme@gmail.com",
                "address": "istanbul",
                "cardInfo": "5554443322",
                "paymentMethod": 1,
            }
        },
    )


class OrderPayload(BaseModel):
    """Checkout request merged with the basket and the computed total.

    Attributes:
        user_name (str): Basket owner.
        items (list[BasketItem]): Basket line items at checkout time.
        total_price (float): Sum of all item prices (``totalPrice`` on the wire).
    """

    user_name: str = Field(..., alias="userName")
    items: list[BasketItem]
    total_price: float = Field(..., alias="totalPrice", ge=0, allow_inf_nan=False)

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_detail(self) -> str:
        """Serialize the payload as the JSON event detail."""
        return self.model_dump_json(by_alias=True)


class CheckoutEvent(BaseModel):
    """Event published to the message bus for one checkout.

    Attributes:
        message_id (str): Identifier generated per event; no de-duplication is implied.
        source (str): Source identifier from configuration.
        detail_type (str): Event type identifier from configuration.
        detail (str): JSON-serialized OrderPayload.
        bus_name (str): Destination bus / topic from configuration.
    """

    message_id: str = Field(default_factory=lambda: f"evt-{uuid.uuid4().hex}", alias="messageId")
    source: str
    detail_type: str = Field(..., alias="detailType")
    detail: str
    bus_name: str = Field(..., alias="busName")

    model_config = ConfigDict(populate_by_name=True)


class PublishReceipt(BaseModel):
    """Acknowledgement returned by the message bus for an accepted event."""

    message_id: str = Field(..., alias="messageId")
    bus_name: str = Field(..., alias="busName")
    partition: Optional[int] = None
    offset: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True)


class StoreAck(BaseModel):
    """Acknowledgement of a basket store write."""

    table_name: str = Field(..., alias="tableName")
    user_name: str = Field(..., alias="userName")
    operation: Literal["put", "delete"]

    model_config = ConfigDict(populate_by_name=True)


class CheckoutState(str, Enum):
    """Progress of a single checkout."""

    RECEIVED = "received"
    FETCHED = "fetched"
    BUILT = "built"
    PUBLISHED = "published"
    CLEARED = "cleared"


class CheckoutResult(BaseModel):
    """Outcome of a checkout that got its event published.

    ``state`` is ``cleared`` for a complete checkout and ``published`` when the
    basket could not be deleted afterwards; ``clear_error`` then describes why.
    """

    user_name: str = Field(..., alias="userName")
    state: CheckoutState
    receipt: PublishReceipt
    clear_error: Optional[dict[str, Any]] = Field(None, alias="clearError")

    model_config = ConfigDict(populate_by_name=True)

    @property
    def completed(self) -> bool:
        return self.state is CheckoutState.CLEARED


class OperationResponse(BaseModel):
    """Envelope returned by every successful API operation."""

    message: str
    body: Any = None
    warning: Optional[dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Envelope returned when an API operation fails."""

    message: str = "Failed to perform operation."
    error_msg: str = Field(..., alias="errorMsg")
    kind: str
    step: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)
