# storefront/data/sql_store.py
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update as sa_update, delete as sa_delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from storefront.data.models import ProductModel, CartItemModel, OrderModel, OrderItemModel
from storefront.data.store import DataStore, Embed, Filters, Ordering, Row
from storefront.domain.errors import RemoteFailure
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

TABLES = {
    "products": ProductModel,
    "cart_items": CartItemModel,
    "orders": OrderModel,
    "order_items": OrderItemModel,
}


def _to_dict(obj) -> Row:
    return {c.name: getattr(obj, c.name) for c in obj.__table__.columns}


class SqlDataStore(DataStore):
    """DataStore over a SQLAlchemy database holding the same tables as the hosted API."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def _model(self, table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise RemoteFailure(f"Unknown table {table}") from None

    def _column(self, model, name: str):
        column = getattr(model, name, None)
        if column is None:
            raise RemoteFailure(f"Unknown column {model.__tablename__}.{name}")
        return column

    def _where(self, model, filters: Optional[Filters]) -> list:
        return [self._column(model, k) == v for k, v in (filters or {}).items()]

    def query(
        self,
        table: str,
        filters: Optional[Filters] = None,
        order: Optional[Ordering] = None,
        embed: Optional[Embed] = None,
    ) -> List[Row]:
        model = self._model(table)
        stmt = select(model).where(*self._where(model, filters))
        if order:
            column = self._column(model, order.field)
            stmt = stmt.order_by(column.desc() if order.descending else column.asc())

        try:
            with self.session_factory() as db:
                rows = [_to_dict(obj) for obj in db.execute(stmt).scalars().all()]
                if embed:
                    self._embed(db, rows, embed)
        except SQLAlchemyError as e:
            raise RemoteFailure(f"Query on {table} failed: {e}") from e
        return rows

    def _embed(self, db, rows: List[Row], embed: Embed) -> None:
        related = self._model(embed.table)
        keys = {r[embed.foreign_key] for r in rows if r.get(embed.foreign_key)}

        found: Dict[Any, Row] = {}
        if keys:
            objs = db.execute(select(related).where(related.id.in_(keys))).scalars()
            found = {obj.id: _to_dict(obj) for obj in objs}

        for r in rows:
            r[embed.name] = found.get(r.get(embed.foreign_key))

    def insert(self, table: str, row: Row) -> Row:
        model = self._model(table)
        try:
            obj = model(**row)
        except TypeError as e:
            raise RemoteFailure(f"Invalid row for {table}: {e}") from e

        try:
            with self.session_factory() as db:
                db.add(obj)
                db.commit()
                db.refresh(obj)
                return _to_dict(obj)
        except SQLAlchemyError as e:
            raise RemoteFailure(f"Insert into {table} failed: {e}") from e

    def update(self, table: str, patch: Row, filters: Filters) -> None:
        model = self._model(table)
        stmt = sa_update(model).where(*self._where(model, filters)).values(**patch)
        self._execute(table, stmt)

    def delete(self, table: str, filters: Filters) -> None:
        model = self._model(table)
        stmt = sa_delete(model).where(*self._where(model, filters))
        self._execute(table, stmt)

    def _execute(self, table: str, stmt) -> None:
        try:
            with self.session_factory() as db:
                affected = db.execute(stmt).rowcount
                db.commit()
        except SQLAlchemyError as e:
            raise RemoteFailure(f"Write to {table} failed: {e}") from e
        logger.debug(f"{table}: {affected} row(s) affected")
