"""Catalog routers. Pets and products expose the same endpoints and the same access rules;
only the payload schemas and the purchase semantics (handled by the service) differ."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from app.api.deps import get_catalog_service
from app.api.v1.auth import client_ip, get_current_caller, get_optional_caller
from app.core.errors import ValidationFailedError
from app.schemas.catalog import (
    PetCreate,
    PetRead,
    PetUpdate,
    ProductCreate,
    ProductRead,
    ProductUpdate,
)
from app.schemas.ownership import ItemKind
from app.services.access_policy import OWNER_FILTER_ME
from app.services.caller import Caller
from app.services.catalog import CatalogService

SCHEMAS = {
    ItemKind.PET: (PetRead, PetCreate, PetUpdate),
    ItemKind.PRODUCT: (ProductRead, ProductCreate, ProductUpdate),
}


def parse_owner_filter(raw: str | None) -> str | int | None:
    """owner_id query value: 'me', 'store' (or 0), or a positive account id."""
    if raw is None or raw == "":
        return None
    value = raw.strip().lower()
    if value == OWNER_FILTER_ME:
        return OWNER_FILTER_ME
    if value in ("store", "0"):
        return "store"
    if value.isdigit():
        return int(value)
    raise ValidationFailedError("owner_id must be 'me', 'store', or an account id")


def build_catalog_router(kind: ItemKind) -> APIRouter:
    """Create the router for one item kind."""
    read_schema, create_schema, update_schema = SCHEMAS[kind]
    router = APIRouter()

    @router.get("", response_model=list[read_schema])
    def list_items(
        caller: Annotated[Caller, Depends(get_optional_caller)],
        catalog: Annotated[CatalogService, Depends(get_catalog_service)],
        owner_id: Annotated[str | None, Query(description="'me', 'store', or an account id")] = None,
    ):
        """
        List items visible to the caller. Without owner_id: staff see everything, other
        signed-in accounts see the store plus their own, anonymous callers see the store.
        """
        return catalog.list_items(kind, caller, parse_owner_filter(owner_id))

    @router.get("/mine", response_model=list[read_schema])
    def list_mine(
        caller: Annotated[Caller, Depends(get_current_caller)],
        catalog: Annotated[CatalogService, Depends(get_catalog_service)],
    ):
        return catalog.list_owned(kind, caller)

    @router.get("/{item_id}", response_model=read_schema)
    def get_item(
        item_id: int,
        caller: Annotated[Caller, Depends(get_optional_caller)],
        catalog: Annotated[CatalogService, Depends(get_catalog_service)],
    ):
        return catalog.get_item(kind, item_id, caller)

    @router.post("", response_model=read_schema, status_code=status.HTTP_201_CREATED)
    def create_item(
        body: create_schema,
        caller: Annotated[Caller, Depends(get_current_caller)],
        catalog: Annotated[CatalogService, Depends(get_catalog_service)],
    ):
        """Create an item (manager/admin). owner_id, if given, must name an existing account."""
        return catalog.create_item(kind, caller, body)

    @router.put("/{item_id}", response_model=read_schema)
    def update_item(
        item_id: int,
        body: update_schema,
        caller: Annotated[Caller, Depends(get_current_caller)],
        catalog: Annotated[CatalogService, Depends(get_catalog_service)],
    ):
        return catalog.update_item(kind, item_id, caller, body)

    @router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_item(
        item_id: int,
        caller: Annotated[Caller, Depends(get_current_caller)],
        catalog: Annotated[CatalogService, Depends(get_catalog_service)],
    ) -> None:
        catalog.delete_item(kind, item_id, caller)

    @router.post("/{item_id}/buy", response_model=read_schema)
    def buy_item(
        item_id: int,
        request: Request,
        caller: Annotated[Caller, Depends(get_current_caller)],
        catalog: Annotated[CatalogService, Depends(get_catalog_service)],
    ):
        """Buy from the store. Returns the caller's newly owned item."""
        return catalog.buy(kind, item_id, caller, ip=client_ip(request))

    return router


pets_router = build_catalog_router(ItemKind.PET)
products_router = build_catalog_router(ItemKind.PRODUCT)
