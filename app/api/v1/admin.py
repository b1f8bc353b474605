"""Admin-only account management: list, inspect, block/unblock, change role."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_account_service
from app.api.v1.auth import client_ip, require_admin
from app.schemas.auth import AccountRead, RoleChangeRequest, UsersListResponse
from app.services.accounts import AccountService
from app.services.caller import Caller

router = APIRouter()


@router.get("/users", response_model=UsersListResponse)
def list_users(
    _admin: Annotated[Caller, Depends(require_admin)],
    accounts: Annotated[AccountService, Depends(get_account_service)],
) -> UsersListResponse:
    """List all accounts (admin only)."""
    return UsersListResponse(
        users=[AccountRead.model_validate(a, from_attributes=True) for a in accounts.list_accounts()]
    )


@router.get("/users/{user_id}", response_model=AccountRead)
def get_user(
    user_id: int,
    _admin: Annotated[Caller, Depends(require_admin)],
    accounts: Annotated[AccountService, Depends(get_account_service)],
) -> AccountRead:
    return AccountRead.model_validate(accounts.get_account(user_id), from_attributes=True)


@router.post("/users/{user_id}/block", response_model=AccountRead)
def block_user(
    user_id: int,
    request: Request,
    admin: Annotated[Caller, Depends(require_admin)],
    accounts: Annotated[AccountService, Depends(get_account_service)],
) -> AccountRead:
    """Block an account. Takes effect on its next request, whatever token it holds."""
    account = accounts.set_blocked(user_id, True, admin_id=admin.id, ip=client_ip(request))
    return AccountRead.model_validate(account, from_attributes=True)


@router.post("/users/{user_id}/unblock", response_model=AccountRead)
def unblock_user(
    user_id: int,
    request: Request,
    admin: Annotated[Caller, Depends(require_admin)],
    accounts: Annotated[AccountService, Depends(get_account_service)],
) -> AccountRead:
    account = accounts.set_blocked(user_id, False, admin_id=admin.id, ip=client_ip(request))
    return AccountRead.model_validate(account, from_attributes=True)


@router.put("/users/{user_id}/role", response_model=AccountRead)
def change_role(
    user_id: int,
    body: RoleChangeRequest,
    request: Request,
    admin: Annotated[Caller, Depends(require_admin)],
    accounts: Annotated[AccountService, Depends(get_account_service)],
) -> AccountRead:
    """Set an account's role (user, manager, admin)."""
    account = accounts.change_role(user_id, body.role, admin_id=admin.id, ip=client_ip(request))
    return AccountRead.model_validate(account, from_attributes=True)
