"""Identity store: persistence of accounts (lookup, create, update)."""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from app.models import User
from app.schemas.auth import AccountRecord
from app.services.item_store import RowNotFoundError, StoreError, translate_errors


class DuplicateHandleError(StoreError):
    """Another account already uses this email."""


class SqlIdentityStore:
    """Account store over SQLAlchemy. No caching: every lookup reads the current row."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get_by_id(self, account_id: int) -> AccountRecord:
        with translate_errors("get account"), self._session_factory() as session:
            user = session.get(User, account_id)
            if user is None:
                raise RowNotFoundError(f"account {account_id} not found")
            return AccountRecord.model_validate(user)

    def get_by_email(self, email: str) -> AccountRecord:
        stmt = select(User).where(User.email == email.strip().lower())
        with translate_errors("get account by email"), self._session_factory() as session:
            user = session.scalars(stmt).first()
            if user is None:
                raise RowNotFoundError("account not found")
            return AccountRecord.model_validate(user)

    def list_all(self) -> list[AccountRecord]:
        with translate_errors("list accounts"), self._session_factory() as session:
            users = session.scalars(select(User).order_by(User.id))
            return [AccountRecord.model_validate(u) for u in users]

    def count(self) -> int:
        with translate_errors("count accounts"), self._session_factory() as session:
            return int(session.scalar(select(func.count()).select_from(User)) or 0)

    def create(self, fields: dict[str, Any]) -> AccountRecord:
        """Insert an account. Raises DuplicateHandleError when the email is taken."""
        with translate_errors("create account"):
            try:
                with self._session_factory() as session, session.begin():
                    user = User(**fields)
                    session.add(user)
                    session.flush()
                    session.refresh(user)
                    return AccountRecord.model_validate(user)
            except IntegrityError as e:
                raise DuplicateHandleError("email already registered") from e

    def update(self, account_id: int, fields: dict[str, Any]) -> AccountRecord:
        """Apply fields to one account. Raises DuplicateHandleError on an email clash."""
        with translate_errors("update account"):
            try:
                with self._session_factory() as session, session.begin():
                    user = session.get(User, account_id, with_for_update=True)
                    if user is None:
                        raise RowNotFoundError(f"account {account_id} not found")
                    for name, value in fields.items():
                        setattr(user, name, value)
                    session.flush()
                    session.refresh(user)
                    return AccountRecord.model_validate(user)
            except IntegrityError as e:
                raise DuplicateHandleError("email already registered") from e
