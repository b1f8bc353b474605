"""Public marketplace counters."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.deps import get_identity_store, get_item_store
from app.schemas.stats import StatsResponse
from app.services.identity_store import SqlIdentityStore
from app.services.item_store import SqlItemStore
from app.services.stats import collect_stats

router = APIRouter()


@router.get("", response_model=StatsResponse)
def get_stats(
    items: Annotated[SqlItemStore, Depends(get_item_store)],
    identities: Annotated[SqlIdentityStore, Depends(get_identity_store)],
) -> StatsResponse:
    """Number of accounts, and of pets and products held by the store or by accounts."""
    return collect_stats(items, identities)
