"""SQL inventory ledger built on SQLAlchemy Core.

``stock_levels`` carries a CHECK constraint so a counter can never be stored
below zero, and the decrement is a single conditional UPDATE whose row count
says whether it applied. ``payment_claims`` has the claim key as primary key;
the database's uniqueness check decides which concurrent claim wins.
"""

from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from sqlalchemy import (
    CheckConstraint,
    Column,
    Integer,
    MetaData,
    String,
    Table,
    and_,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, OperationalError

from storefront.errors import TransientStorageError
from storefront.inventory.ledger.port import StockLedger, StockMovement, stock_key

logger = structlog.get_logger(__name__)

metadata = MetaData()

stock_levels = Table(
    "stock_levels",
    metadata,
    Column("product_id", String(64), primary_key=True),
    Column("variation_id", String(64), primary_key=True),
    Column("quantity", Integer, nullable=False),
    CheckConstraint("quantity >= 0", name="ck_stock_levels_non_negative"),
)

payment_claims = Table(
    "payment_claims",
    metadata,
    Column("claim_key", String(255), primary_key=True),
    Column("order_id", String(64), nullable=False),
)


class SqlStockLedger(StockLedger):
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def create_schema(self) -> None:
        metadata.create_all(self.engine)

    def drop_schema(self) -> None:
        metadata.drop_all(self.engine)

    @contextmanager
    def _transaction(self) -> Iterator[Connection]:
        try:
            with self.engine.begin() as conn:
                yield conn
        except OperationalError as exc:
            logger.error("ledger_storage_unavailable", error=str(exc.orig))
            raise TransientStorageError("Inventory storage is unavailable") from exc

    @staticmethod
    def _row(product_id: str, variation_id: str | None):
        product_key, variation_key = stock_key(product_id, variation_id)
        return and_(
            stock_levels.c.product_id == product_key,
            stock_levels.c.variation_id == variation_key,
        )

    def set_level(self, product_id: str, variation_id: str | None, quantity: int) -> None:
        if quantity < 0:
            raise ValueError("Stock level cannot be negative")
        product_key, variation_key = stock_key(product_id, variation_id)
        with self._transaction() as conn:
            result = conn.execute(
                update(stock_levels).where(self._row(product_id, variation_id)).values(quantity=quantity)
            )
            if result.rowcount == 0:
                conn.execute(
                    insert(stock_levels).values(
                        product_id=product_key,
                        variation_id=variation_key,
                        quantity=quantity,
                    )
                )

    def forget(self, product_id: str, variation_id: str | None = None) -> None:
        if variation_id is None:
            clause = stock_levels.c.product_id == str(product_id)
        else:
            clause = self._row(product_id, variation_id)
        with self._transaction() as conn:
            conn.execute(delete(stock_levels).where(clause))

    def level(self, product_id: str, variation_id: str | None) -> int | None:
        with self._transaction() as conn:
            return conn.execute(
                select(stock_levels.c.quantity).where(self._row(product_id, variation_id))
            ).scalar_one_or_none()

    def decrement(self, product_id: str, variation_id: str | None, quantity: int) -> StockMovement:
        with self._transaction() as conn:
            result = conn.execute(
                update(stock_levels)
                .where(self._row(product_id, variation_id), stock_levels.c.quantity >= quantity)
                .values(quantity=stock_levels.c.quantity - quantity)
            )
            current = conn.execute(
                select(stock_levels.c.quantity).where(self._row(product_id, variation_id))
            ).scalar_one_or_none()

        if result.rowcount == 1:
            return StockMovement(ok=True, remaining=current)
        if current is None:
            return StockMovement(ok=True)
        return StockMovement(ok=False, available=current)

    def increment(self, product_id: str, variation_id: str | None, quantity: int) -> None:
        with self._transaction() as conn:
            conn.execute(
                update(stock_levels)
                .where(self._row(product_id, variation_id))
                .values(quantity=stock_levels.c.quantity + quantity)
            )

    def claim(self, key: str, order_id: str) -> bool:
        try:
            with self._transaction() as conn:
                conn.execute(insert(payment_claims).values(claim_key=key, order_id=order_id))
        except IntegrityError:
            return False
        return True

    def release_claim(self, key: str, order_id: str) -> None:
        with self._transaction() as conn:
            conn.execute(
                delete(payment_claims).where(
                    payment_claims.c.claim_key == key,
                    payment_claims.c.order_id == order_id,
                )
            )

    def claimant(self, key: str) -> str | None:
        with self._transaction() as conn:
            return conn.execute(
                select(payment_claims.c.order_id).where(payment_claims.c.claim_key == key)
            ).scalar_one_or_none()
