import unittest

from tests.support import DatabaseTestCase

from src.exceptions import TrainNotFoundError
from src.ledger.inventory import InventoryLedger


class InventoryLedgerTests(DatabaseTestCase):
    def setUp(self):
        super().setUp()
        self.train = self.add_train(seats=3)
        self.inventory = InventoryLedger(self.db)

    def test_decrement_takes_seats(self):
        self.assertEqual(self.inventory.decrement(self.train.id), 2)
        self.assertEqual(self.inventory.decrement(self.train.id, 2), 0)

    def test_decrement_clamps_at_zero(self):
        self.assertEqual(self.inventory.decrement(self.train.id, 5), 0)
        self.assertEqual(self.inventory.decrement(self.train.id), 0)

    def test_increment_clamps_at_capacity(self):
        self.inventory.decrement(self.train.id)
        self.assertEqual(self.inventory.increment(self.train.id), 3)
        self.assertEqual(self.inventory.increment(self.train.id, 4), 3)

    def test_apply_signed_delta(self):
        self.assertEqual(self.inventory.apply(self.train.id, -2), 1)
        self.assertEqual(self.inventory.apply(self.train.id, 1), 2)
        self.assertEqual(self.inventory.apply(self.train.id, 0), 2)

    def test_changes_are_visible_after_commit(self):
        self.inventory.decrement(self.train.id, 2)
        self.db.commit()
        self.assertEqual(self.reload_train(self.train.id).available_seats, 1)

    def test_unknown_train(self):
        with self.assertRaises(TrainNotFoundError):
            self.inventory.decrement(9999)
        with self.assertRaises(TrainNotFoundError):
            self.inventory.available(9999)


if __name__ == "__main__":
    unittest.main()
