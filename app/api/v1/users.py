"""Self-service profile endpoints for the authenticated account."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.deps import get_account_service
from app.api.v1.auth import get_current_caller
from app.schemas.auth import AccountRead, ProfileUpdate
from app.services.accounts import AccountService
from app.services.caller import Caller

router = APIRouter()


@router.get("/me", response_model=AccountRead)
def get_me(
    caller: Annotated[Caller, Depends(get_current_caller)],
    accounts: Annotated[AccountService, Depends(get_account_service)],
) -> AccountRead:
    account = accounts.get_account(caller.id)
    return AccountRead.model_validate(account, from_attributes=True)


@router.put("/me", response_model=AccountRead)
def update_me(
    body: ProfileUpdate,
    caller: Annotated[Caller, Depends(get_current_caller)],
    accounts: Annotated[AccountService, Depends(get_account_service)],
) -> AccountRead:
    """Update first/last name, email or image. Role and blocked are not accepted."""
    account = accounts.update_profile(caller.id, body)
    return AccountRead.model_validate(account, from_attributes=True)
