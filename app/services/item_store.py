"""Item store: persistence of pet and product rows, including the row-lock primitive.

with_lock() is the only place transfers touch storage: it opens one transaction, selects
the target row with SELECT ... FOR UPDATE under a predicate, hands a LockedRow to the
caller's function, and commits only if that function returns. Any exception rolls back.
"""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, Protocol, TypeVar

from sqlalchemy import and_, false, func, or_, select, true, update
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.models import Pet, Product
from app.schemas.catalog import ItemRecord, PetRead, ProductRead
from app.schemas.ownership import ItemKind
from app.services.access_policy import ItemFilter

logger = logging.getLogger(__name__)

T = TypeVar("T")

MODEL_BY_KIND: dict[ItemKind, type[Pet] | type[Product]] = {
    ItemKind.PET: Pet,
    ItemKind.PRODUCT: Product,
}

RECORD_BY_KIND: dict[ItemKind, type[PetRead] | type[ProductRead]] = {
    ItemKind.PET: PetRead,
    ItemKind.PRODUCT: ProductRead,
}

# Postgres SQLSTATEs for lock/serialization contention: serialization_failure,
# deadlock_detected, lock_not_available.
_CONTENTION_PGCODES = frozenset({"40001", "40P01", "55P03"})


class StoreError(Exception):
    """Base class for item and identity store failures."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class RowNotFoundError(StoreError):
    """No row with that id (and, for with_lock, matching the predicate)."""


class LockConflictError(StoreError):
    """Lock contention or a lost compare-and-swap; the operation may be retried."""


class StoreUnavailableError(StoreError):
    """The database is unreachable, timed out, or rejected the statement."""


class LockedRow(Protocol):
    """Handle on a row held under an exclusive lock inside an open transaction."""

    kind: ItemKind
    record: ItemRecord

    def update(self, **fields: Any) -> ItemRecord: ...

    def transfer_owner(self, buyer_id: int) -> ItemRecord: ...

    def decrement_stock(self) -> ItemRecord: ...

    def create(self, **fields: Any) -> ItemRecord: ...


class ItemStore(Protocol):
    """Storage contract the catalog service and the transfer engine are written against."""

    def get_by_id(self, kind: ItemKind, item_id: int) -> ItemRecord: ...

    def find_many(self, kind: ItemKind, item_filter: ItemFilter) -> list[ItemRecord]: ...

    def create_row(self, kind: ItemKind, fields: dict[str, Any]) -> ItemRecord: ...

    def update_fields(self, kind: ItemKind, item_id: int, fields: dict[str, Any]) -> ItemRecord: ...

    def delete_by_id(self, kind: ItemKind, item_id: int) -> None: ...

    def with_lock(
        self,
        kind: ItemKind,
        item_id: int,
        predicate: ItemFilter,
        fn: Callable[[LockedRow], T],
    ) -> T: ...


def to_record(kind: ItemKind, row: Pet | Product) -> ItemRecord:
    return RECORD_BY_KIND[kind].model_validate(row)


def is_lock_contention(exc: OperationalError) -> bool:
    """True when the driver error means contention rather than an outage."""
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) in _CONTENTION_PGCODES:
        return True
    # SQLite reports writer contention as "database is locked".
    return "database is locked" in str(orig or exc).lower()


@contextmanager
def translate_errors(action: str) -> Iterator[None]:
    """Map SQLAlchemy exceptions onto store errors. Store errors pass through."""
    try:
        yield
    except StoreError:
        raise
    except OperationalError as e:
        if is_lock_contention(e):
            raise LockConflictError(f"{action}: lock contention") from e
        logger.error("Store operation failed", extra={"action": action, "reason": str(e)[:500]})
        raise StoreUnavailableError(f"{action}: database unavailable") from e
    except SQLAlchemyError as e:
        logger.error("Store operation failed", extra={"action": action, "reason": str(e)[:500]})
        raise StoreUnavailableError(f"{action}: database error") from e


def filter_clause(model: type[Pet] | type[Product], item_filter: ItemFilter):
    """Translate an ItemFilter into a SQLAlchemy WHERE clause."""
    clauses = []
    if not item_filter.all_owners:
        owner_clauses = []
        if item_filter.include_store:
            owner_clauses.append(model.owner_id.is_(None))
        if item_filter.owner_ids:
            owner_clauses.append(model.owner_id.in_(item_filter.owner_ids))
        clauses.append(or_(*owner_clauses) if owner_clauses else false())
    if item_filter.in_stock:
        clauses.append(model.stock > 0)
    return and_(*clauses) if clauses else true()


class SqlLockedRow:
    """LockedRow bound to the SQLAlchemy session that holds the row lock."""

    def __init__(self, session: Session, kind: ItemKind, row: Pet | Product) -> None:
        self._session = session
        self._row = row
        self.kind = kind
        self.model = MODEL_BY_KIND[kind]
        self.record = to_record(kind, row)

    def update(self, **fields: Any) -> ItemRecord:
        for name, value in fields.items():
            setattr(self._row, name, value)
        self._session.flush()
        self._session.refresh(self._row)
        self.record = to_record(self.kind, self._row)
        return self.record

    def transfer_owner(self, buyer_id: int) -> ItemRecord:
        """Conditional owner change: only applies while the row is still held by the store."""
        model = self.model
        result = self._session.execute(
            update(model)
            .where(model.id == self._row.id, model.owner_id.is_(None))
            .values(owner_id=buyer_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise LockConflictError(f"owner of {self.kind.value} {self._row.id} changed under lock")
        self._session.refresh(self._row)
        self.record = to_record(self.kind, self._row)
        return self.record

    def decrement_stock(self) -> ItemRecord:
        """Conditional decrement: only applies while the row is still a store row with stock."""
        model = self.model
        result = self._session.execute(
            update(model)
            .where(model.id == self._row.id, model.owner_id.is_(None), model.stock > 0)
            .values(stock=model.stock - 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise LockConflictError(f"stock of {self.kind.value} {self._row.id} changed under lock")
        self._session.refresh(self._row)
        self.record = to_record(self.kind, self._row)
        return self.record

    def create(self, **fields: Any) -> ItemRecord:
        row = self.model(**fields)
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return to_record(self.kind, row)


class SqlItemStore:
    """ItemStore over SQLAlchemy. Every call opens its own short-lived session."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get_by_id(self, kind: ItemKind, item_id: int) -> ItemRecord:
        model = MODEL_BY_KIND[kind]
        with translate_errors(f"get {kind.value}"), self._session_factory() as session:
            row = session.get(model, item_id)
            if row is None:
                raise RowNotFoundError(f"{kind.value} {item_id} not found")
            return to_record(kind, row)

    def find_many(self, kind: ItemKind, item_filter: ItemFilter) -> list[ItemRecord]:
        model = MODEL_BY_KIND[kind]
        stmt = select(model).where(filter_clause(model, item_filter)).order_by(model.id)
        with translate_errors(f"list {kind.plural}"), self._session_factory() as session:
            return [to_record(kind, row) for row in session.scalars(stmt)]

    def count(self, kind: ItemKind, item_filter: ItemFilter) -> int:
        model = MODEL_BY_KIND[kind]
        stmt = select(func.count()).select_from(model).where(filter_clause(model, item_filter))
        with translate_errors(f"count {kind.plural}"), self._session_factory() as session:
            return int(session.scalar(stmt) or 0)

    def create_row(self, kind: ItemKind, fields: dict[str, Any]) -> ItemRecord:
        model = MODEL_BY_KIND[kind]
        with translate_errors(f"create {kind.value}"), self._session_factory() as session, session.begin():
            row = model(**fields)
            session.add(row)
            session.flush()
            session.refresh(row)
            return to_record(kind, row)

    def update_fields(self, kind: ItemKind, item_id: int, fields: dict[str, Any]) -> ItemRecord:
        model = MODEL_BY_KIND[kind]
        with translate_errors(f"update {kind.value}"), self._session_factory() as session, session.begin():
            row = session.get(model, item_id, with_for_update=True)
            if row is None:
                raise RowNotFoundError(f"{kind.value} {item_id} not found")
            for name, value in fields.items():
                setattr(row, name, value)
            session.flush()
            session.refresh(row)
            return to_record(kind, row)

    def delete_by_id(self, kind: ItemKind, item_id: int) -> None:
        model = MODEL_BY_KIND[kind]
        with translate_errors(f"delete {kind.value}"), self._session_factory() as session, session.begin():
            row = session.get(model, item_id, with_for_update=True)
            if row is None:
                raise RowNotFoundError(f"{kind.value} {item_id} not found")
            session.delete(row)

    def with_lock(
        self,
        kind: ItemKind,
        item_id: int,
        predicate: ItemFilter,
        fn: Callable[[LockedRow], T],
    ) -> T:
        """
        Run fn against the row matching id and predicate while holding its row lock.
        Commits when fn returns; rolls back when fn (or the commit) raises.
        Raises RowNotFoundError when no row matches.
        """
        model = MODEL_BY_KIND[kind]
        stmt = (
            select(model)
            .where(model.id == item_id, filter_clause(model, predicate))
            .with_for_update()
        )
        with translate_errors(f"lock {kind.value}"), self._session_factory() as session, session.begin():
            row = session.scalars(stmt).one_or_none()
            if row is None:
                raise RowNotFoundError(f"{kind.value} {item_id} not available")
            return fn(SqlLockedRow(session, kind, row))
