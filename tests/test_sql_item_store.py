"""SqlItemStore and SqlIdentityStore against in-memory SQLite, plus transfers end to end."""

import os
import tempfile
import threading
import time
import unittest
from unittest.mock import patch

from app.core.database import build_engine, build_session_factory
from app.models import Base
from app.schemas.ownership import STORE, ItemKind
from app.services.access_policy import ANY_OWNER, STORE_ONLY, ItemFilter, only_owner
from app.services.identity_store import DuplicateHandleError, SqlIdentityStore
from app.services.item_store import (
    LockConflictError,
    RowNotFoundError,
    SqlItemStore,
    SqlLockedRow,
    StoreUnavailableError,
)
from app.services.ownership_transfer import OwnershipTransferEngine, TransferStatus

PET_FIELDS = {"name": "Rex", "price": 150.0, "breed": "Beagle", "age": 3, "gender": "male"}
PRODUCT_FIELDS = {"name": "Chew toy", "price": 4.5, "category": "toys", "stock": 2}


class SqliteTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = build_engine("sqlite://")
        Base.metadata.create_all(self.engine)
        factory = build_session_factory(self.engine)
        self.items = SqlItemStore(factory)
        self.identities = SqlIdentityStore(factory)
        self.buyer = self._account("buyer@example.com")

    def tearDown(self) -> None:
        self.engine.dispose()

    def _account(self, email: str, role: str = "user"):
        return self.identities.create(
            {
                "first_name": "Test",
                "last_name": "User",
                "email": email,
                "password_hash": "x",
                "role": role,
            }
        )


class TestItemStoreCrud(SqliteTestCase):
    def test_create_and_get(self) -> None:
        pet = self.items.create_row(ItemKind.PET, PET_FIELDS)
        self.assertIsNotNone(pet.id)
        self.assertIs(pet.owner_id, STORE)
        self.assertEqual(pet.image, "default-pet.jpg")
        self.assertEqual(self.items.get_by_id(ItemKind.PET, pet.id).name, "Rex")

    def test_get_missing(self) -> None:
        with self.assertRaises(RowNotFoundError):
            self.items.get_by_id(ItemKind.PRODUCT, 404)

    def test_find_many_filters(self) -> None:
        store_pet = self.items.create_row(ItemKind.PET, PET_FIELDS)
        owned_pet = self.items.create_row(ItemKind.PET, {**PET_FIELDS, "owner_id": self.buyer.id})

        def ids(item_filter):
            return [p.id for p in self.items.find_many(ItemKind.PET, item_filter)]

        self.assertEqual(ids(STORE_ONLY), [store_pet.id])
        self.assertEqual(ids(only_owner(self.buyer.id)), [owned_pet.id])
        self.assertEqual(ids(ANY_OWNER), [store_pet.id, owned_pet.id])
        self.assertEqual(
            ids(ItemFilter(include_store=True, owner_ids=(self.buyer.id,))),
            [store_pet.id, owned_pet.id],
        )
        self.assertEqual(ids(ItemFilter(include_store=False)), [])
        self.assertEqual(self.items.count(ItemKind.PET, STORE_ONLY), 1)

    def test_update_and_delete(self) -> None:
        product = self.items.create_row(ItemKind.PRODUCT, PRODUCT_FIELDS)
        updated = self.items.update_fields(ItemKind.PRODUCT, product.id, {"stock": 9})
        self.assertEqual(updated.stock, 9)
        self.items.delete_by_id(ItemKind.PRODUCT, product.id)
        with self.assertRaises(RowNotFoundError):
            self.items.delete_by_id(ItemKind.PRODUCT, product.id)
        with self.assertRaises(RowNotFoundError):
            self.items.update_fields(ItemKind.PRODUCT, product.id, {"stock": 1})

    def test_with_lock_predicate_miss(self) -> None:
        owned = self.items.create_row(ItemKind.PET, {**PET_FIELDS, "owner_id": self.buyer.id})
        with self.assertRaises(RowNotFoundError):
            self.items.with_lock(ItemKind.PET, owned.id, STORE_ONLY, lambda row: row.record)


class TestSqlTransfers(SqliteTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.engine_tx = OwnershipTransferEngine(self.items, sleep=lambda _: None)
        self.other = self._account("other@example.com")

    def test_pet_bought_once(self) -> None:
        pet = self.items.create_row(ItemKind.PET, PET_FIELDS)
        first = self.engine_tx.acquire_instance(pet.id, self.buyer.id)
        second = self.engine_tx.acquire_instance(pet.id, self.other.id)
        self.assertEqual(first.status, TransferStatus.COMPLETED)
        self.assertEqual(second.status, TransferStatus.NOT_AVAILABLE)
        self.assertEqual(self.items.get_by_id(ItemKind.PET, pet.id).owner_id, self.buyer.id)

    def test_product_units(self) -> None:
        product = self.items.create_row(ItemKind.PRODUCT, PRODUCT_FIELDS)
        a = self.engine_tx.acquire_unit(product.id, self.buyer.id)
        b = self.engine_tx.acquire_unit(product.id, self.other.id)
        c = self.engine_tx.acquire_unit(product.id, self.buyer.id)
        self.assertTrue(a.succeeded and b.succeeded)
        self.assertEqual(c.status, TransferStatus.NOT_AVAILABLE)
        self.assertEqual(self.items.get_by_id(ItemKind.PRODUCT, product.id).stock, 0)
        both = ItemFilter(include_store=False, owner_ids=(self.buyer.id, self.other.id))
        owned = self.items.find_many(ItemKind.PRODUCT, both)
        self.assertEqual(sorted(r.owner_id for r in owned), sorted([self.buyer.id, self.other.id]))
        self.assertTrue(all(r.stock == 1 and r.name == "Chew toy" for r in owned))

    def test_insert_failure_rolls_back_decrement(self) -> None:
        product = self.items.create_row(ItemKind.PRODUCT, PRODUCT_FIELDS)
        with patch.object(SqlLockedRow, "create", side_effect=StoreUnavailableError("insert failed")):
            outcome = self.engine_tx.acquire_unit(product.id, self.buyer.id)
        self.assertEqual(outcome.status, TransferStatus.PERSISTENCE_FAILURE)
        self.assertEqual(self.items.get_by_id(ItemKind.PRODUCT, product.id).stock, 2)
        self.assertEqual(self.items.count(ItemKind.PRODUCT, ANY_OWNER), 1)

    def test_owner_change_is_conditional(self) -> None:
        owned = self.items.create_row(ItemKind.PET, {**PET_FIELDS, "owner_id": self.buyer.id})
        with self.assertRaises(LockConflictError):
            self.items.with_lock(
                ItemKind.PET, owned.id, ANY_OWNER, lambda row: row.transfer_owner(self.other.id)
            )
        self.assertEqual(self.items.get_by_id(ItemKind.PET, owned.id).owner_id, self.buyer.id)


class SlowLockStore(SqlItemStore):
    """Pauses between the locked read and the write so concurrent buyers overlap."""

    def __init__(self, session_factory, pause_sec: float = 0.2) -> None:
        super().__init__(session_factory)
        self._pause_sec = pause_sec

    def with_lock(self, kind, item_id, predicate, fn):
        def paused(row):
            time.sleep(self._pause_sec)
            return fn(row)

        return super().with_lock(kind, item_id, predicate, paused)


class TestConcurrentSqliteTransfers(unittest.TestCase):
    """Threads racing on a file-backed SQLite database, where FOR UPDATE is not enforced."""

    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.engine = build_engine(f"sqlite:///{os.path.join(self.tmpdir.name, 'market.db')}")
        Base.metadata.create_all(self.engine)
        factory = build_session_factory(self.engine)
        self.items = SlowLockStore(factory)
        identities = SqlIdentityStore(factory)
        self.buyer_ids = [
            identities.create(
                {
                    "first_name": "Buyer",
                    "last_name": str(i),
                    "email": f"buyer{i}@example.com",
                    "password_hash": "x",
                    "role": "user",
                }
            ).id
            for i in range(3)
        ]
        self.transfers = OwnershipTransferEngine(
            self.items, max_attempts=10, retry_backoff_sec=0.01
        )

    def tearDown(self) -> None:
        self.engine.dispose()
        self.tmpdir.cleanup()

    def race(self, fn, item_id: int, buyer_ids: list[int]):
        barrier = threading.Barrier(len(buyer_ids))
        outcomes = {}

        def worker(buyer_id):
            barrier.wait()
            outcomes[buyer_id] = fn(item_id, buyer_id)

        threads = [threading.Thread(target=worker, args=(b,)) for b in buyer_ids]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)
        return outcomes

    def test_pet_has_single_winner(self) -> None:
        pet = self.items.create_row(ItemKind.PET, PET_FIELDS)
        outcomes = self.race(self.transfers.acquire_instance, pet.id, self.buyer_ids)
        winners = [b for b, o in outcomes.items() if o.status is TransferStatus.COMPLETED]
        self.assertEqual(len(winners), 1)
        self.assertTrue(
            all(
                o.status is TransferStatus.NOT_AVAILABLE
                for b, o in outcomes.items()
                if b != winners[0]
            )
        )
        self.assertEqual(self.items.get_by_id(ItemKind.PET, pet.id).owner_id, winners[0])

    def test_two_units_three_buyers(self) -> None:
        product = self.items.create_row(ItemKind.PRODUCT, PRODUCT_FIELDS)
        outcomes = self.race(self.transfers.acquire_unit, product.id, self.buyer_ids)
        statuses = [o.status for o in outcomes.values()]
        self.assertEqual(statuses.count(TransferStatus.COMPLETED), 2)
        self.assertEqual(statuses.count(TransferStatus.NOT_AVAILABLE), 1)
        self.assertEqual(self.items.get_by_id(ItemKind.PRODUCT, product.id).stock, 0)
        owned = self.items.find_many(
            ItemKind.PRODUCT, ItemFilter(include_store=False, owner_ids=tuple(self.buyer_ids))
        )
        self.assertEqual(len(owned), 2)
        self.assertTrue(all(r.stock == 1 for r in owned))
        self.assertEqual(len({r.owner_id for r in owned}), 2)


class TestIdentityStore(SqliteTestCase):
    def test_duplicate_email(self) -> None:
        with self.assertRaises(DuplicateHandleError):
            self._account("buyer@example.com")

    def test_lookup_and_update(self) -> None:
        found = self.identities.get_by_email("  BUYER@example.com ")
        self.assertEqual(found.id, self.buyer.id)
        updated = self.identities.update(self.buyer.id, {"blocked": True, "role": "manager"})
        self.assertTrue(updated.blocked)
        self.assertEqual(self.identities.get_by_id(self.buyer.id).role.value, "manager")
        self.assertEqual(self.identities.count(), 1)

    def test_update_email_clash(self) -> None:
        other = self._account("taken@example.com")
        with self.assertRaises(DuplicateHandleError):
            self.identities.update(other.id, {"email": "buyer@example.com"})

    def test_missing_account(self) -> None:
        with self.assertRaises(RowNotFoundError):
            self.identities.get_by_id(999)


if __name__ == "__main__":
    unittest.main()
