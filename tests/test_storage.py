import unittest

from fakes import InMemoryStore
from memory_journal.utils.health_check import check_health, get_health_status
from memory_journal.utils.storage import StorageNotInitializedError, close_storage, get_storage, init_storage


class StorageLifecycleTests(unittest.TestCase):

    def setUp(self) -> None:
        close_storage()
        self.addCleanup(close_storage)
        self.store = InMemoryStore()

    def test_get_storage_before_init_raises(self) -> None:
        with self.assertRaises(StorageNotInitializedError):
            get_storage()

    def test_init_is_idempotent(self) -> None:
        self.assertIs(init_storage(store=self.store), self.store)
        self.assertIs(init_storage(store=InMemoryStore()), self.store)
        self.assertIs(get_storage(), self.store)

    def test_close_is_safe_to_repeat(self) -> None:
        init_storage(store=self.store)

        close_storage()
        close_storage()

        self.assertTrue(self.store.closed)
        with self.assertRaises(StorageNotInitializedError):
            get_storage()

    def test_health_reflects_storage_state(self) -> None:
        self.assertFalse(get_health_status()['opensearch']['healthy'])
        self.assertFalse(check_health())

        init_storage(store=self.store)
        self.assertTrue(get_health_status()['opensearch']['healthy'])
        self.assertTrue(check_health())


if __name__ == '__main__':
    unittest.main()
