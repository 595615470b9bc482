"""Unit tests for LandmarkRegistry."""

import unittest

from ekfslam.errors import InvariantViolation
from ekfslam.slam import LandmarkRegistry


class TestLandmarkRegistry(unittest.TestCase):
    """Landmark id -> state index bookkeeping."""

    def setUp(self):
        self.registry = LandmarkRegistry()

    def test_unknown_id_resolves_to_none(self):
        self.assertIsNone(self.registry.resolve(42))
        self.assertNotIn(42, self.registry)

    def test_indices_assigned_in_insertion_order(self):
        self.assertEqual(self.registry.register(5), 1)
        self.assertEqual(self.registry.register(17), 2)
        self.assertEqual(self.registry.register(3), 3)

        self.assertEqual(self.registry.resolve(5), 1)
        self.assertEqual(self.registry.resolve(3), 3)
        self.assertEqual(self.registry.ids(), (5, 17, 3))
        self.assertEqual(list(self.registry), [5, 17, 3])
        self.assertEqual(len(self.registry), 3)

    def test_register_known_id_raises(self):
        self.registry.register(5)
        with self.assertRaises(InvariantViolation):
            self.registry.register(5)
        # The failed call must not consume an index
        self.assertEqual(self.registry.register(6), 2)

    def test_copy_is_independent(self):
        self.registry.register(5)
        working = self.registry.copy()
        self.assertEqual(working.register(9), 2)

        self.assertEqual(self.registry.ids(), (5,))
        self.assertEqual(working.ids(), (5, 9))

    def test_clear(self):
        self.registry.register(5)
        self.registry.clear()
        self.assertEqual(len(self.registry), 0)
        self.assertEqual(self.registry.register(9), 1)

    def test_consistency_check(self):
        self.registry.register(1)
        self.registry.register(2)
        self.registry.check_consistency()

        self.registry._index_by_id[2] = 1
        with self.assertRaises(InvariantViolation):
            self.registry.check_consistency()


if __name__ == "__main__":
    unittest.main()
