"""FastAPI dependency providers: stores, token issuer, services.

Everything the services need is built here per request from the session factory and
settings, so tests swap the database by overriding get_session_factory alone.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import Settings, get_settings
from app.core.database import SessionLocal
from app.core.security import TokenIssuer
from app.services.accounts import AccountService
from app.services.catalog import CatalogService
from app.services.identity_store import SqlIdentityStore
from app.services.item_store import SqlItemStore
from app.services.ownership_transfer import OwnershipTransferEngine


def get_session_factory() -> sessionmaker[Session]:
    return SessionLocal


def get_item_store(
    factory: Annotated[sessionmaker[Session], Depends(get_session_factory)],
) -> SqlItemStore:
    return SqlItemStore(factory)


def get_identity_store(
    factory: Annotated[sessionmaker[Session], Depends(get_session_factory)],
) -> SqlIdentityStore:
    return SqlIdentityStore(factory)


def get_token_issuer(
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenIssuer:
    return TokenIssuer.from_settings(settings)


def get_transfer_engine(
    items: Annotated[SqlItemStore, Depends(get_item_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> OwnershipTransferEngine:
    return OwnershipTransferEngine(
        items,
        max_attempts=settings.TRANSFER_MAX_ATTEMPTS,
        retry_backoff_sec=settings.TRANSFER_RETRY_BACKOFF_SEC,
    )


def get_catalog_service(
    items: Annotated[SqlItemStore, Depends(get_item_store)],
    identities: Annotated[SqlIdentityStore, Depends(get_identity_store)],
    transfers: Annotated[OwnershipTransferEngine, Depends(get_transfer_engine)],
) -> CatalogService:
    return CatalogService(items, identities, transfers)


def get_account_service(
    identities: Annotated[SqlIdentityStore, Depends(get_identity_store)],
) -> AccountService:
    return AccountService(identities)
