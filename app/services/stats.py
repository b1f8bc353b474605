"""Marketplace counters for the public stats endpoint."""

from app.core.errors import PersistenceFailureError
from app.schemas.ownership import ItemKind
from app.schemas.stats import StatsResponse
from app.services.access_policy import ANY_OWNER, STORE_ONLY
from app.services.identity_store import SqlIdentityStore
from app.services.item_store import SqlItemStore, StoreError


def collect_stats(items: SqlItemStore, identities: SqlIdentityStore) -> StatsResponse:
    """Count accounts and catalog rows, split into store-held and owned."""
    try:
        users = identities.count()
        total_pets = items.count(ItemKind.PET, ANY_OWNER)
        store_pets = items.count(ItemKind.PET, STORE_ONLY)
        total_products = items.count(ItemKind.PRODUCT, ANY_OWNER)
        store_products = items.count(ItemKind.PRODUCT, STORE_ONLY)
    except StoreError as e:
        raise PersistenceFailureError("Failed to fetch stats") from e
    return StatsResponse(
        users=users,
        total_pets=total_pets,
        store_pets=store_pets,
        owned_pets=total_pets - store_pets,
        total_products=total_products,
        store_products=store_products,
        owned_products=total_products - store_products,
    )
