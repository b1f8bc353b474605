"""Resolve the caller of a request from a bearer token and the live account row.

The token only proves identity. Authorization always comes from the account as it is
stored right now: a block or role change applies to the next request, even when the
caller still holds an older token whose role claim says otherwise.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from app.core.errors import ForbiddenError, PersistenceFailureError, UnauthenticatedError
from app.core.logging import audit
from app.core.security import InvalidTokenError, TokenIssuer
from app.schemas.auth import AccountRecord
from app.schemas.ownership import Role
from app.services.item_store import RowNotFoundError, StoreError

logger = logging.getLogger(__name__)


class AccountLookup(Protocol):
    def get_by_id(self, account_id: int) -> AccountRecord: ...


@dataclass(frozen=True)
class Caller:
    """Who is making the request, as seen by the access policy."""

    id: int | None
    role: Role
    authenticated: bool

    @property
    def is_staff(self) -> bool:
        return self.authenticated and self.role.is_staff


ANONYMOUS = Caller(id=None, role=Role.USER, authenticated=False)


def resolve_caller(
    token: str | None,
    issuer: TokenIssuer,
    accounts: AccountLookup,
    required: bool = True,
    ip: str | None = None,
) -> Caller:
    """
    Verify token and re-check the account it names.

    No token: ANONYMOUS, or UnauthenticatedError when required.
    Bad/expired token or unknown account: UnauthenticatedError.
    Blocked account: ForbiddenError.
    """
    if not token:
        if required:
            raise UnauthenticatedError("Not authenticated")
        return ANONYMOUS

    try:
        claims = issuer.verify(token)
    except InvalidTokenError as e:
        logger.warning("Invalid token attempt", extra={"ip": ip, "reason": str(e)})
        raise UnauthenticatedError(str(e)) from e

    try:
        account = accounts.get_by_id(claims.account_id)
    except RowNotFoundError as e:
        raise UnauthenticatedError("User not found") from e
    except StoreError as e:
        raise PersistenceFailureError("Account lookup failed") from e

    if account.blocked:
        audit("auth_blocked", account.id, ip)
        raise ForbiddenError("User is blocked")

    if claims.role != account.role.value:
        logger.info(
            "Token role claim is stale; using stored role",
            extra={"user_id": account.id, "token_role": claims.role, "role": account.role.value},
        )
    return Caller(id=account.id, role=account.role, authenticated=True)
