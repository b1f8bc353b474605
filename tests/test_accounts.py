"""AccountService error translation and the create_user script's exit codes."""

import unittest
from unittest.mock import MagicMock, patch

from app.core.errors import ConflictError, PersistenceFailureError
from app.schemas.ownership import Role
from app.scripts import create_user
from app.services.accounts import AccountService
from app.services.identity_store import DuplicateHandleError
from app.services.item_store import StoreUnavailableError

PASSWORD = "Str0ng!pass"


class TestCreateAccount(unittest.TestCase):
    def setUp(self) -> None:
        self.identities = MagicMock()
        self.accounts = AccountService(self.identities, bcrypt_rounds=4)

    def test_store_outage_becomes_persistence_failure(self) -> None:
        self.identities.create.side_effect = StoreUnavailableError("down")
        with self.assertRaises(PersistenceFailureError):
            self.accounts.create_account("ops@mail.com", PASSWORD, "Ops", "Admin", Role.ADMIN)

    def test_duplicate_becomes_conflict(self) -> None:
        self.identities.create.side_effect = DuplicateHandleError("taken")
        with self.assertRaises(ConflictError):
            self.accounts.create_account("ops@mail.com", PASSWORD, "Ops", "Admin")

    def test_email_normalised_and_role_kept(self) -> None:
        self.accounts.create_account(" Ops@Mail.com ", PASSWORD, "Ops", "Admin", Role.MANAGER)
        fields = self.identities.create.call_args.args[0]
        self.assertEqual(fields["email"], "ops@mail.com")
        self.assertEqual(fields["role"], "manager")
        self.assertNotEqual(fields["password_hash"], PASSWORD)


class TestCreateUserScript(unittest.TestCase):
    def test_store_outage_exits_with_error(self) -> None:
        identities = MagicMock()
        identities.create.side_effect = StoreUnavailableError("down")
        with patch.object(create_user, "SqlIdentityStore", return_value=identities):
            code = create_user.main(["ops@mail.com", PASSWORD, "Ops", "Admin", "admin"])
        self.assertEqual(code, 1)

    def test_short_password_rejected(self) -> None:
        self.assertEqual(create_user.main(["ops@mail.com", "short", "Ops", "Admin"]), 1)


if __name__ == "__main__":
    unittest.main()
