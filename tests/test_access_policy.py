"""Unit tests for the access policy: decide() and decide_listing()."""

import unittest

from app.schemas.ownership import STORE, DenyReason, Operation, Role
from app.services.access_policy import (
    ANY_OWNER,
    STORE_IN_STOCK,
    STORE_ONLY,
    ItemFilter,
    decide,
    decide_listing,
    only_owner,
)


class TestUnauthenticated(unittest.TestCase):
    """Anonymous callers may only read store items."""

    def test_read_store_item_allowed(self) -> None:
        d = decide(Operation.READ_ONE, Role.USER, False, None, STORE)
        self.assertTrue(d.allowed)
        self.assertIsNone(d.reason)

    def test_read_owned_item_unauthenticated(self) -> None:
        d = decide(Operation.READ_ONE, Role.USER, False, None, 42)
        self.assertFalse(d.allowed)
        self.assertEqual(d.reason, DenyReason.UNAUTHENTICATED)

    def test_writes_and_transfer_denied(self) -> None:
        for op in (Operation.CREATE, Operation.UPDATE, Operation.DELETE, Operation.TRANSFER):
            with self.subTest(op=op):
                d = decide(op, Role.ADMIN, False, None, STORE)
                self.assertEqual(d.reason, DenyReason.UNAUTHENTICATED)


class TestStoreItems(unittest.TestCase):
    def test_manager_may_update_store_item(self) -> None:
        self.assertTrue(decide(Operation.UPDATE, Role.MANAGER, True, 7, STORE).allowed)

    def test_user_may_not_update_store_item(self) -> None:
        d = decide(Operation.UPDATE, Role.USER, True, 7, STORE)
        self.assertFalse(d.allowed)
        self.assertEqual(d.reason, DenyReason.FORBIDDEN)

    def test_create_requires_staff(self) -> None:
        self.assertTrue(decide(Operation.CREATE, Role.ADMIN, True, 1, STORE).allowed)
        self.assertEqual(
            decide(Operation.CREATE, Role.USER, True, 7, STORE).reason, DenyReason.FORBIDDEN
        )

    def test_user_may_not_create_item_for_self(self) -> None:
        self.assertEqual(
            decide(Operation.CREATE, Role.USER, True, 7, 7).reason, DenyReason.FORBIDDEN
        )

    def test_any_authenticated_role_may_buy(self) -> None:
        for role in Role:
            with self.subTest(role=role):
                self.assertTrue(decide(Operation.TRANSFER, role, True, 7, STORE).allowed)


class TestOwnedItems(unittest.TestCase):
    def test_owner_may_read_update_delete(self) -> None:
        for op in (Operation.READ_ONE, Operation.UPDATE, Operation.DELETE):
            with self.subTest(op=op):
                self.assertTrue(decide(op, Role.USER, True, 7, 7).allowed)

    def test_other_user_forbidden(self) -> None:
        d = decide(Operation.READ_ONE, Role.USER, True, 8, 7)
        self.assertEqual(d.reason, DenyReason.FORBIDDEN)

    def test_staff_may_act_on_other_accounts_items(self) -> None:
        for role in (Role.MANAGER, Role.ADMIN):
            for op in (Operation.READ_ONE, Operation.UPDATE, Operation.DELETE):
                with self.subTest(role=role, op=op):
                    self.assertTrue(decide(op, role, True, 1, 7).allowed)

    def test_transfer_of_owned_item_not_available(self) -> None:
        """Buying an owned item looks the same as buying a missing one, for every role."""
        for role in Role:
            with self.subTest(role=role):
                d = decide(Operation.TRANSFER, role, True, 7, 7)
                self.assertEqual(d.reason, DenyReason.NOT_AVAILABLE)


class TestListing(unittest.TestCase):
    def test_anonymous_sees_store_only(self) -> None:
        listing = decide_listing(Role.USER, False, None)
        self.assertTrue(listing.allowed)
        self.assertEqual(listing.item_filter, STORE_ONLY)

    def test_staff_sees_everything(self) -> None:
        listing = decide_listing(Role.MANAGER, True, 3)
        self.assertEqual(listing.item_filter, ANY_OWNER)

    def test_user_sees_store_and_own(self) -> None:
        listing = decide_listing(Role.USER, True, 7)
        self.assertTrue(listing.item_filter.include_store)
        self.assertEqual(listing.item_filter.owner_ids, (7,))

    def test_me_filter(self) -> None:
        self.assertEqual(decide_listing(Role.USER, True, 7, "me").item_filter, only_owner(7))
        self.assertEqual(
            decide_listing(Role.USER, False, None, "me").decision.reason,
            DenyReason.UNAUTHENTICATED,
        )

    def test_explicit_owner_filter(self) -> None:
        self.assertTrue(decide_listing(Role.USER, True, 7, 7).allowed)
        self.assertEqual(
            decide_listing(Role.USER, True, 7, 8).decision.reason, DenyReason.FORBIDDEN
        )
        self.assertEqual(
            decide_listing(Role.USER, False, None, 8).decision.reason, DenyReason.UNAUTHENTICATED
        )
        self.assertEqual(decide_listing(Role.ADMIN, True, 1, 8).item_filter, only_owner(8))

    def test_store_filter_open_to_everyone(self) -> None:
        self.assertEqual(decide_listing(Role.USER, False, None, "store").item_filter, STORE_ONLY)


class TestItemFilter(unittest.TestCase):
    def test_matches(self) -> None:
        self.assertTrue(STORE_ONLY.matches(STORE))
        self.assertFalse(STORE_ONLY.matches(7))
        self.assertTrue(ANY_OWNER.matches(7))
        self.assertTrue(only_owner(7).matches(7))
        self.assertFalse(only_owner(7).matches(STORE))
        self.assertFalse(ItemFilter(include_store=False).matches(STORE))

    def test_in_stock(self) -> None:
        self.assertTrue(STORE_IN_STOCK.matches(STORE, 1))
        self.assertFalse(STORE_IN_STOCK.matches(STORE, 0))
        self.assertFalse(STORE_IN_STOCK.matches(STORE, None))
        self.assertFalse(STORE_IN_STOCK.matches(7, 1))


if __name__ == "__main__":
    unittest.main()
