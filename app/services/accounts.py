"""Account operations: registration, login, self-service profile and admin actions."""

import logging

from app.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PersistenceFailureError,
    UnauthenticatedError,
    ValidationFailedError,
)
from app.core.logging import audit
from app.core.security import hash_password, verify_password
from app.schemas.auth import AccountRecord, ProfileUpdate, RegisterRequest
from app.schemas.ownership import Role
from app.services.identity_store import DuplicateHandleError, SqlIdentityStore
from app.services.item_store import RowNotFoundError, StoreError

logger = logging.getLogger(__name__)

DEFAULT_USER_IMAGE = "default-user.jpg"


class AccountService:
    """Account lifecycle on top of the identity store. Admin checks happen in the API layer."""

    def __init__(self, identities: SqlIdentityStore, bcrypt_rounds: int | None = None) -> None:
        self._identities = identities
        self._bcrypt_rounds = bcrypt_rounds

    def _hash(self, password: str) -> str:
        if self._bcrypt_rounds is None:
            return hash_password(password)
        return hash_password(password, rounds=self._bcrypt_rounds)

    def _get(self, account_id: int) -> AccountRecord:
        try:
            return self._identities.get_by_id(account_id)
        except RowNotFoundError as e:
            raise NotFoundError("User not found") from e
        except StoreError as e:
            raise PersistenceFailureError("Account lookup failed") from e

    def _update(self, account_id: int, fields: dict) -> AccountRecord:
        try:
            return self._identities.update(account_id, fields)
        except DuplicateHandleError as e:
            raise ConflictError("Email already registered") from e
        except RowNotFoundError as e:
            raise NotFoundError("User not found") from e
        except StoreError as e:
            raise PersistenceFailureError("Account update failed") from e

    def register(self, body: RegisterRequest, ip: str | None = None) -> AccountRecord:
        """Create an account with role 'user'. Duplicate email -> ConflictError."""
        try:
            account = self._identities.create(
                {
                    "first_name": body.first_name,
                    "last_name": body.last_name,
                    "email": body.email,
                    "password_hash": self._hash(body.password),
                    "role": Role.USER.value,
                    "image": DEFAULT_USER_IMAGE,
                    "blocked": False,
                }
            )
        except DuplicateHandleError as e:
            audit("register", None, ip, "duplicate email")
            raise ConflictError("User already exists") from e
        except StoreError as e:
            raise PersistenceFailureError("Account creation failed") from e
        audit("register", account.id, ip)
        return account

    def create_account(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: Role = Role.USER,
    ) -> AccountRecord:
        """Bootstrap path used by the create_user script; may assign any role."""
        try:
            return self._identities.create(
                {
                    "first_name": first_name,
                    "last_name": last_name,
                    "email": email.strip().lower(),
                    "password_hash": self._hash(password),
                    "role": role.value,
                    "image": DEFAULT_USER_IMAGE,
                    "blocked": False,
                }
            )
        except DuplicateHandleError as e:
            raise ConflictError(f"User '{email}' already exists") from e
        except StoreError as e:
            raise PersistenceFailureError("Account creation failed") from e

    def authenticate(self, email: str, password: str, ip: str | None = None) -> AccountRecord:
        """Check credentials. Wrong email or password -> 401; blocked -> 403."""
        try:
            account = self._identities.get_by_email(email)
        except RowNotFoundError as e:
            audit("login_fail", None, ip, "unknown email")
            raise UnauthenticatedError("Invalid credentials") from e
        except StoreError as e:
            raise PersistenceFailureError("Account lookup failed") from e
        if not verify_password(password, account.password_hash):
            audit("login_fail", account.id, ip, "bad password")
            raise UnauthenticatedError("Invalid credentials")
        if account.blocked:
            audit("login_blocked", account.id, ip)
            raise ForbiddenError("User blocked")
        audit("login", account.id, ip)
        return account

    def get_account(self, account_id: int) -> AccountRecord:
        return self._get(account_id)

    def list_accounts(self) -> list[AccountRecord]:
        try:
            return self._identities.list_all()
        except StoreError as e:
            raise PersistenceFailureError("Failed to fetch users") from e

    def update_profile(self, account_id: int, body: ProfileUpdate) -> AccountRecord:
        """Self-update of name, email and image. Role and blocked cannot be changed here."""
        fields = body.model_dump(mode="json", exclude_none=True)
        if not fields:
            raise ValidationFailedError("No fields to update")
        return self._update(account_id, fields)

    def set_blocked(
        self, account_id: int, blocked: bool, admin_id: int | None = None, ip: str | None = None
    ) -> AccountRecord:
        if blocked and account_id == admin_id:
            raise ValidationFailedError("Admins cannot block themselves")
        account = self._update(account_id, {"blocked": blocked})
        audit("block_user" if blocked else "unblock_user", account.id, ip)
        logger.info(
            "Account block state changed",
            extra={"user_id": account.id, "blocked": blocked, "admin_id": admin_id},
        )
        return account

    def change_role(
        self, account_id: int, role: Role, admin_id: int | None = None, ip: str | None = None
    ) -> AccountRecord:
        account = self._update(account_id, {"role": role.value})
        audit("change_role", account.id, ip)
        logger.info(
            "Account role changed",
            extra={"user_id": account.id, "role": role.value, "admin_id": admin_id},
        )
        return account
