"""Ownership transfer engine: atomic purchase of store items.

Two operations, both executed inside ItemStore.with_lock so the check and the mutation
happen under one row lock in one transaction:

- acquire_instance (pets): the store row itself changes owner.
- acquire_unit (products): the store row loses one unit of stock and a new row with
  stock 1 is created for the buyer. Decrement and insert commit together or not at all.

Missing, already-owned and out-of-stock targets all come back as NOT_AVAILABLE.
Lock contention is retried here a bounded number of times; store outages are not.
Both writes are conditional updates (owner still NULL, stock still above zero), so a
backend without row locks, such as SQLite, still lets only one buyer win; the loser sees
a LockConflictError, retries, and then finds the row no longer matches.
Callers get a TransferOutcome, never a store exception.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from app.schemas.catalog import ItemRecord
from app.schemas.ownership import ItemKind
from app.services.access_policy import STORE_IN_STOCK, STORE_ONLY, ItemFilter
from app.services.item_store import (
    ItemStore,
    LockConflictError,
    LockedRow,
    RowNotFoundError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_BACKOFF_SEC = 0.05

# Descriptive product fields copied from the store row into the buyer's unit.
UNIT_COPY_FIELDS = ("name", "description", "price", "category", "brand", "image", "mass")


class TransferStatus(str, Enum):
    COMPLETED = "completed"
    NOT_AVAILABLE = "not_available"
    PERSISTENCE_FAILURE = "persistence_failure"


@dataclass(frozen=True)
class TransferOutcome:
    """
    Result of a transfer. item is the buyer's row on COMPLETED (the re-owned pet, or
    the newly created product unit) and None otherwise.
    """

    status: TransferStatus
    item: ItemRecord | None = None
    detail: str = ""
    attempts: int = 1

    @property
    def succeeded(self) -> bool:
        return self.status is TransferStatus.COMPLETED


class OwnershipTransferEngine:
    """Executes store-to-buyer transfers against an injected ItemStore."""

    def __init__(
        self,
        store: ItemStore,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_backoff_sec: float = DEFAULT_RETRY_BACKOFF_SEC,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._store = store
        self._max_attempts = max_attempts
        self._retry_backoff_sec = retry_backoff_sec
        self._sleep = sleep

    def acquire(self, kind: ItemKind, item_id: int, buyer_id: int) -> TransferOutcome:
        """Dispatch to the transfer that matches the kind's divisibility."""
        if kind.divisible:
            return self.acquire_unit(item_id, buyer_id, kind=kind)
        return self.acquire_instance(item_id, buyer_id, kind=kind)

    def acquire_instance(
        self, item_id: int, buyer_id: int, kind: ItemKind = ItemKind.PET
    ) -> TransferOutcome:
        """Move a non-divisible store item to buyer_id by rewriting its owner."""
        if kind.divisible:
            raise ValueError(f"{kind.value} is divisible; use acquire_unit")

        def take(row: LockedRow) -> ItemRecord:
            return row.transfer_owner(buyer_id)

        return self._run(kind, item_id, buyer_id, STORE_ONLY, take)

    def acquire_unit(
        self, item_id: int, buyer_id: int, kind: ItemKind = ItemKind.PRODUCT
    ) -> TransferOutcome:
        """Take one unit of stock from a store row into a new row owned by buyer_id."""
        if not kind.divisible:
            raise ValueError(f"{kind.value} is not divisible; use acquire_instance")

        def take_unit(row: LockedRow) -> ItemRecord:
            source = row.decrement_stock()
            fields = {name: getattr(source, name) for name in UNIT_COPY_FIELDS}
            return row.create(**fields, stock=1, owner_id=buyer_id)

        return self._run(kind, item_id, buyer_id, STORE_IN_STOCK, take_unit)

    def _run(
        self,
        kind: ItemKind,
        item_id: int,
        buyer_id: int,
        predicate: ItemFilter,
        fn: Callable[[LockedRow], ItemRecord],
    ) -> TransferOutcome:
        log_extra = {"kind": kind.value, "item_id": item_id, "buyer_id": buyer_id}
        for attempt in range(1, self._max_attempts + 1):
            try:
                item = self._store.with_lock(kind, item_id, predicate, fn)
            except RowNotFoundError:
                logger.info("Transfer target not available", extra=log_extra)
                return TransferOutcome(
                    TransferStatus.NOT_AVAILABLE,
                    detail=f"{kind.value.capitalize()} not found, already owned, or out of stock",
                    attempts=attempt,
                )
            except LockConflictError as e:
                if attempt < self._max_attempts:
                    logger.warning(
                        "Transfer lock contention; retrying",
                        extra={**log_extra, "attempt": attempt, "reason": e.message},
                    )
                    self._sleep(self._retry_backoff_sec * attempt)
                    continue
                logger.error(
                    "Transfer retries exhausted",
                    extra={**log_extra, "attempt": attempt, "reason": e.message},
                )
                return TransferOutcome(
                    TransferStatus.PERSISTENCE_FAILURE,
                    detail="Item is busy; transfer could not be completed",
                    attempts=attempt,
                )
            except StoreUnavailableError as e:
                logger.error(
                    "Transfer failed: store unavailable",
                    extra={**log_extra, "attempt": attempt, "reason": e.message},
                )
                return TransferOutcome(
                    TransferStatus.PERSISTENCE_FAILURE,
                    detail="Storage unavailable; transfer was not applied",
                    attempts=attempt,
                )
            logger.info("Transfer completed", extra={**log_extra, "new_item_id": item.id})
            return TransferOutcome(TransferStatus.COMPLETED, item=item, attempts=attempt)
        raise AssertionError("unreachable: retry loop always returns")
