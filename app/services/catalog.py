"""Catalog operations for pets and products, each gated by the access policy.

Reads, creates, updates and deletes go straight to the item store once the policy allows
them. Purchases are handed to the ownership transfer engine. Policy denials, transfer
outcomes and store errors are turned into app.core.errors exceptions here so the HTTP
layer only has to render them.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from pydantic import BaseModel

from app.core.errors import (
    ForbiddenError,
    NotAvailableError,
    NotFoundError,
    PersistenceFailureError,
    UnauthenticatedError,
    ValidationFailedError,
)
from app.core.logging import audit
from app.schemas.catalog import ItemRecord
from app.schemas.ownership import STORE, DenyReason, ItemKind, Operation, OwnerId
from app.services.access_policy import OWNER_FILTER_ME, Decision, decide, decide_listing
from app.services.caller import AccountLookup, Caller
from app.services.item_store import ItemStore, RowNotFoundError, StoreError
from app.services.ownership_transfer import OwnershipTransferEngine, TransferStatus

logger = logging.getLogger(__name__)

_DENIAL_ERRORS = {
    DenyReason.UNAUTHENTICATED: UnauthenticatedError,
    DenyReason.FORBIDDEN: ForbiddenError,
    DenyReason.NOT_AVAILABLE: NotAvailableError,
}


def enforce(decision: Decision) -> None:
    """Raise the error matching a denied decision; do nothing when allowed."""
    if decision.allowed:
        return
    raise _DENIAL_ERRORS[decision.reason](decision.message or "Not authorized")


@contextmanager
def store_errors(kind: ItemKind) -> Iterator[None]:
    try:
        yield
    except RowNotFoundError as e:
        raise NotFoundError(f"{kind.value.capitalize()} not found") from e
    except StoreError as e:
        raise PersistenceFailureError(f"Storage error while accessing {kind.plural}") from e


class CatalogService:
    """Policy-checked catalog operations over injected stores and transfer engine."""

    def __init__(
        self,
        items: ItemStore,
        accounts: AccountLookup,
        transfers: OwnershipTransferEngine,
    ) -> None:
        self._items = items
        self._accounts = accounts
        self._transfers = transfers

    def _decide(self, operation: Operation, caller: Caller, owner: OwnerId) -> None:
        enforce(decide(operation, caller.role, caller.authenticated, caller.id, owner))

    def _check_owner_exists(self, owner_id: OwnerId) -> None:
        if owner_id is STORE:
            return
        try:
            self._accounts.get_by_id(owner_id)
        except RowNotFoundError as e:
            raise ValidationFailedError("Invalid owner_id") from e
        except StoreError as e:
            raise PersistenceFailureError("Account lookup failed") from e

    @staticmethod
    def _check_unit_stock(kind: ItemKind, owner_id: OwnerId, stock: int | None) -> None:
        """An owned product is one unit: its stock must be exactly 1."""
        if kind.divisible and owner_id is not STORE and stock != 1:
            raise ValidationFailedError("Owned products must have stock 1")

    def list_items(
        self, kind: ItemKind, caller: Caller, owner_filter: str | int | None = None
    ) -> list[ItemRecord]:
        listing = decide_listing(caller.role, caller.authenticated, caller.id, owner_filter)
        enforce(listing.decision)
        with store_errors(kind):
            return self._items.find_many(kind, listing.item_filter)

    def list_owned(self, kind: ItemKind, caller: Caller) -> list[ItemRecord]:
        return self.list_items(kind, caller, OWNER_FILTER_ME)

    def get_item(self, kind: ItemKind, item_id: int, caller: Caller) -> ItemRecord:
        with store_errors(kind):
            item = self._items.get_by_id(kind, item_id)
        self._decide(Operation.READ_ONE, caller, item.owner_id)
        return item

    def create_item(self, kind: ItemKind, caller: Caller, payload: BaseModel) -> ItemRecord:
        fields = payload.model_dump(mode="json", exclude_none=True)
        owner_id = fields.get("owner_id", STORE)
        self._decide(Operation.CREATE, caller, owner_id)
        self._check_owner_exists(owner_id)
        self._check_unit_stock(kind, owner_id, fields.get("stock"))
        with store_errors(kind):
            item = self._items.create_row(kind, fields)
        logger.info(
            "Catalog item created",
            extra={"kind": kind.value, "item_id": item.id, "owner_id": owner_id, "user_id": caller.id},
        )
        return item

    def update_item(
        self, kind: ItemKind, item_id: int, caller: Caller, payload: BaseModel
    ) -> ItemRecord:
        current = self.get_item(kind, item_id, caller)
        self._decide(Operation.UPDATE, caller, current.owner_id)

        changes: dict[str, Any] = {
            name: value
            for name, value in payload.model_dump(mode="json", exclude_unset=True).items()
            if value is not None or name == "owner_id"
        }
        if not changes:
            raise ValidationFailedError("No fields to update")

        new_owner = changes.get("owner_id", current.owner_id)
        if new_owner != current.owner_id:
            if not caller.is_staff:
                raise ForbiddenError("Only managers and admins may reassign ownership")
            self._check_owner_exists(new_owner)
        if kind.divisible:
            self._check_unit_stock(kind, new_owner, changes.get("stock", getattr(current, "stock", None)))

        with store_errors(kind):
            return self._items.update_fields(kind, item_id, changes)

    def delete_item(self, kind: ItemKind, item_id: int, caller: Caller) -> None:
        current = self.get_item(kind, item_id, caller)
        self._decide(Operation.DELETE, caller, current.owner_id)
        with store_errors(kind):
            self._items.delete_by_id(kind, item_id)
        logger.info(
            "Catalog item deleted",
            extra={"kind": kind.value, "item_id": item_id, "user_id": caller.id},
        )

    def buy(self, kind: ItemKind, item_id: int, caller: Caller, ip: str | None = None) -> ItemRecord:
        """
        Purchase a store item for the caller. The transfer engine re-checks store
        ownership (and stock) under the row lock, so no prior read is needed here.
        """
        self._decide(Operation.TRANSFER, caller, STORE)
        outcome = self._transfers.acquire(kind, item_id, caller.id)
        if outcome.status is TransferStatus.NOT_AVAILABLE:
            audit(f"buy_{kind.value}", caller.id, ip, outcome.detail)
            raise NotAvailableError(outcome.detail)
        if outcome.status is TransferStatus.PERSISTENCE_FAILURE:
            audit(f"buy_{kind.value}", caller.id, ip, outcome.detail)
            raise PersistenceFailureError(outcome.detail)
        audit(f"buy_{kind.value}", caller.id, ip)
        return outcome.item
