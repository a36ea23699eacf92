"""Basket store adapter."""

from typing import Optional, Protocol

from logging_utils.config import get_component_logger

from .errors import MalformedBasketError
from .schemas import Basket, StoreAck

logger = get_component_logger("basket-service", "store")


class BasketStore(Protocol):
    """Protocol defining key-value access to baskets keyed by user name.

    ``get_one`` returns None when no record exists and raises
    MalformedBasketError for a record that is not a valid basket; every
    other failure is raised as StoreError.
    """

    def get_one(self, user_name: str) -> Optional[Basket]: ...

    def get_all(self) -> list[Basket]: ...

    def put(self, basket: Basket) -> StoreAck: ...

    def delete(self, user_name: str) -> StoreAck: ...


class InMemoryBasketStore:
    """Basket table held in process memory.

    Records are kept in their serialized form so that every read hands out a
    fresh Basket and callers never share mutable state with the table.
    """

    def __init__(self, table_name: str) -> None:
        """Initialize an empty table.

        Args:
            table_name: Name of the table, reported in acknowledgements and logs.
        """
        self.table_name = table_name
        self._records: dict[str, dict] = {}

    def get_one(self, user_name: str) -> Optional[Basket]:
        """Get the basket of a user, or None if nothing is stored."""
        record = self._records.get(user_name)
        logger.debug(f"Basket lookup | table={self.table_name} | user_name={user_name} | found={record is not None}")
        if record is None:
            return None
        return self._load(record)

    def get_all(self) -> list[Basket]:
        """Scan every basket in the table."""
        return [self._load(record) for record in list(self._records.values())]

    def put(self, basket: Basket) -> StoreAck:
        """Create or fully overwrite the basket of ``basket.user_name``."""
        self._records[basket.user_name] = basket.to_record()
        logger.info(f"Basket stored | table={self.table_name} | user_name={basket.user_name}")
        return StoreAck(tableName=self.table_name, userName=basket.user_name, operation="put")

    def delete(self, user_name: str) -> StoreAck:
        """Delete the basket of a user. Deleting a missing basket succeeds."""
        existed = self._records.pop(user_name, None) is not None
        logger.info(f"Basket deleted | table={self.table_name} | user_name={user_name} | existed={existed}")
        return StoreAck(tableName=self.table_name, userName=user_name, operation="delete")

    def _load(self, record: dict) -> Basket:
        try:
            return Basket.model_validate(record)
        except ValueError as e:
            raise MalformedBasketError(
                f"Basket record in table {self.table_name} is malformed: {e}",
                step="fetch",
                user_name=record.get("userName"),
            ) from e
