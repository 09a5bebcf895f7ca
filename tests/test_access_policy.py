import unittest

from memory_journal.models.core import Memory
from memory_journal.services import access_policy
from memory_journal.services.access_policy import Operation
from memory_journal.utils.timestamp_utils import utc_now

OWNER = 'user_owner111'
OTHER = 'user_other222'


def _memory(is_private):
    now = utc_now()
    return Memory(id='mem_abc12345',
                  user_id=OWNER,
                  title='t',
                  description='d',
                  date='2023-01-01',
                  type='memory',
                  is_private=is_private,
                  created_at=now,
                  updated_at=now)


class VisibilityTests(unittest.TestCase):

    def test_public_memories_are_readable_by_anyone(self) -> None:
        for requester in (None, OTHER, OWNER):
            with self.subTest(requester=requester):
                self.assertTrue(access_policy.can_read(_memory(False), requester))

    def test_private_memories_are_readable_by_owner_only(self) -> None:
        memory = _memory(True)
        self.assertTrue(access_policy.can_read(memory, OWNER))
        self.assertFalse(access_policy.can_read(memory, OTHER))
        self.assertFalse(access_policy.can_read(memory, None))

    def test_only_owner_may_modify(self) -> None:
        for operation in (Operation.UPDATE, Operation.DELETE):
            for is_private in (False, True):
                with self.subTest(operation=operation, is_private=is_private):
                    memory = _memory(is_private)
                    self.assertTrue(access_policy.is_permitted(operation, memory, OWNER))
                    self.assertFalse(access_policy.is_permitted(operation, memory, OTHER))
                    self.assertFalse(access_policy.is_permitted(operation, memory, None))


class FilterTests(unittest.TestCase):

    def test_search_filters(self) -> None:
        self.assertEqual(access_policy.search_filters(), {'is_private': False})
        self.assertEqual(access_policy.search_filters(OWNER), {'is_private': False})
        self.assertEqual(access_policy.search_filters(OWNER, include_private=True), {'user_id': OWNER})
        self.assertEqual(access_policy.search_filters('garbage', include_private=True), {'is_private': False})

    def test_owner_listing_filters(self) -> None:
        self.assertEqual(access_policy.owner_listing_filters(OWNER, True), {'user_id': OWNER})
        self.assertEqual(access_policy.owner_listing_filters(OWNER, False), {'user_id': OWNER, 'is_private': False})

    def test_write_filters_scope_to_owner(self) -> None:
        self.assertEqual(access_policy.write_filters('mem_abc12345', OWNER), {'id': 'mem_abc12345', 'user_id': OWNER})


if __name__ == '__main__':
    unittest.main()
