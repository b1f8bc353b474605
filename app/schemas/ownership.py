"""Shared ownership and role vocabulary used by the access policy and the transfer engine."""

from enum import Enum
from typing import Final

# Owner value of an item held in the shared store inventory (no owning account).
STORE: Final = None

# An item's owner: STORE (None) or an account id.
OwnerId = int | None


class Role(str, Enum):
    """Closed set of account roles."""

    USER = "user"
    MANAGER = "manager"
    ADMIN = "admin"

    @property
    def is_staff(self) -> bool:
        """Managers and admins may act on store items and on other accounts' items."""
        return self in (Role.MANAGER, Role.ADMIN)


class Operation(str, Enum):
    """Operation kinds the access policy decides on."""

    READ_ONE = "read_one"
    READ_MANY = "read_many"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    TRANSFER = "transfer"


class DenyReason(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_AVAILABLE = "not_available"


class ItemKind(str, Enum):
    """
    Catalog item kinds. Both share the ownership shape; they differ only in how a
    purchase moves ownership.

    pet: non-divisible, a purchase rewrites the owner of the single row.
    product: divisible, a purchase takes one unit of stock into a new owned row.
    """

    PET = "pet"
    PRODUCT = "product"

    @property
    def divisible(self) -> bool:
        return self is ItemKind.PRODUCT

    @property
    def plural(self) -> str:
        return f"{self.value}s"
