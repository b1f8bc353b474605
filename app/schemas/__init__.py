"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AccountRead,
    AccountRecord,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    RegisterResponse,
    RoleChangeRequest,
    TokenResponse,
)
from app.schemas.catalog import (
    ItemRecord,
    PetCreate,
    PetRead,
    PetUpdate,
    ProductCreate,
    ProductRead,
    ProductUpdate,
)
from app.schemas.health import HealthResponse
from app.schemas.ownership import STORE, DenyReason, ItemKind, Operation, Role
from app.schemas.stats import StatsResponse

__all__ = [
    "STORE",
    "AccountRead",
    "AccountRecord",
    "DenyReason",
    "HealthResponse",
    "ItemKind",
    "ItemRecord",
    "LoginRequest",
    "Operation",
    "PetCreate",
    "PetRead",
    "PetUpdate",
    "ProductCreate",
    "ProductRead",
    "ProductUpdate",
    "ProfileUpdate",
    "RegisterRequest",
    "RegisterResponse",
    "Role",
    "RoleChangeRequest",
    "StatsResponse",
    "TokenResponse",
]
