"""Error taxonomy for the basket service."""

from typing import Optional


class BasketServiceError(Exception):
    """Base class for every failure the basket service reports.

    Attributes:
        kind: Stable classification of the failure, used in API responses.
        step: Checkout step that failed (fetch, build, publish, clear), if any.
        user_name: User whose basket was being processed, if known.
    """

    kind = "BasketServiceError"

    def __init__(self, message: str, *, step: Optional[str] = None, user_name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.step = step
        self.user_name = user_name

    def to_dict(self) -> dict:
        """Render the error as a structured description."""
        return {"kind": self.kind, "message": self.message, "step": self.step}


class ConfigurationError(BasketServiceError):
    """Required service configuration is missing or invalid."""

    kind = "ConfigurationError"


class InvalidRequestError(BasketServiceError):
    """The inbound request is missing required input; rejected before any I/O."""

    kind = "InvalidRequestError"


class MalformedBasketError(BasketServiceError):
    """The stored basket is not in a checkout-eligible shape."""

    kind = "MalformedBasketError"


class StoreError(BasketServiceError):
    """The basket store failed (connectivity, throttling, permissions, ...)."""

    kind = "StoreError"


class PublishError(BasketServiceError):
    """The message bus rejected or did not acknowledge an event."""

    kind = "PublishError"


class EventPublishError(BasketServiceError):
    """Checkout stopped because the checkout event could not be published.

    The basket is left intact.
    """

    kind = "EventPublishError"


class BasketClearError(BasketServiceError):
    """The checkout event was published but the basket could not be deleted."""

    kind = "BasketClearError"
