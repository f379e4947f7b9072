# storefront/data/store.py
"""
Capability interface of the remote data collaborator.

Tables are addressed by name and rows travel as plain dicts. Filters are a
conjunction of equality predicates ({"user_id": "...", "product_id": "..."}).
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Ordering:
    field: str
    descending: bool = False


@dataclass(frozen=True)
class Embed:
    """Inline the row of `table` referenced by `foreign_key` under key `name`."""

    name: str
    table: str
    foreign_key: str


PRODUCT_EMBED = Embed(name="product", table="products", foreign_key="product_id")
NEWEST_FIRST = Ordering(field="created_at", descending=True)

Row = Dict[str, Any]
Filters = Dict[str, Any]


class DataStore(ABC):
    """
    Every method may raise RemoteFailure. Deleting rows that do not exist is
    not an error.
    """

    @abstractmethod
    def query(
        self,
        table: str,
        filters: Optional[Filters] = None,
        order: Optional[Ordering] = None,
        embed: Optional[Embed] = None,
    ) -> List[Row]:
        ...

    @abstractmethod
    def insert(self, table: str, row: Row) -> Row:
        ...

    @abstractmethod
    def update(self, table: str, patch: Row, filters: Filters) -> None:
        ...

    @abstractmethod
    def delete(self, table: str, filters: Filters) -> None:
        ...
