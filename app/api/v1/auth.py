"""Registration, login, token refresh, and the caller dependencies used by every router."""

from datetime import timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.api.deps import get_account_service, get_identity_store, get_token_issuer
from app.core.config import Settings, get_settings
from app.core.errors import ForbiddenError
from app.core.security import TokenIssuer
from app.schemas.auth import (
    AccountRead,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from app.schemas.ownership import Role
from app.services.accounts import AccountService
from app.services.caller import Caller, resolve_caller
from app.services.identity_store import SqlIdentityStore

router = APIRouter()
security = HTTPBearer(auto_error=False)


def client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


def _token(credentials: HTTPAuthorizationCredentials | None) -> str | None:
    return credentials.credentials if credentials is not None else None


def get_current_caller(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    identities: Annotated[SqlIdentityStore, Depends(get_identity_store)],
) -> Caller:
    """Dependency: require a valid Bearer JWT for an existing, unblocked account."""
    return resolve_caller(
        _token(credentials), issuer, identities, required=True, ip=client_ip(request)
    )


def get_optional_caller(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    identities: Annotated[SqlIdentityStore, Depends(get_identity_store)],
) -> Caller:
    """Dependency: anonymous caller when no token is sent; a sent token must be valid."""
    return resolve_caller(
        _token(credentials), issuer, identities, required=False, ip=client_ip(request)
    )


def require_admin(
    caller: Annotated[Caller, Depends(get_current_caller)],
) -> Caller:
    """Dependency: require the live account role 'admin'. Raises 403 otherwise."""
    if caller.role is not Role.ADMIN:
        raise ForbiddenError("Admin access required")
    return caller


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    request: Request,
    accounts: Annotated[AccountService, Depends(get_account_service)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> RegisterResponse:
    """Create a 'user' account and return it with an access token."""
    account = accounts.register(body, ip=client_ip(request))
    token = issuer.issue(account.id, account.role.value)
    return RegisterResponse(
        user=AccountRead.model_validate(account, from_attributes=True),
        access_token=token,
    )


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    request: Request,
    accounts: Annotated[AccountService, Depends(get_account_service)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> TokenResponse:
    """
    Authenticate with email and password; returns a JWT access token.
    Include the token in the Authorization header as: Bearer <access_token>
    """
    account = accounts.authenticate(body.email, body.password, ip=client_ip(request))
    token = issuer.issue(account.id, account.role.value)
    return TokenResponse(access_token=token, token_type="bearer")


@router.post("/refresh", response_model=TokenResponse)
def refresh(
    caller: Annotated[Caller, Depends(get_current_caller)],
    issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TokenResponse:
    """Issue a short-lived token carrying the caller's current role."""
    token = issuer.issue(
        caller.id,
        caller.role.value,
        ttl=timedelta(minutes=settings.REFRESH_EXPIRE_MINUTES),
    )
    return TokenResponse(access_token=token, token_type="bearer")
