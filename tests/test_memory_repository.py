import unittest
from unittest import mock

from fakes import JournalTestCase, memory_payload
from memory_journal.services.errors import ConflictError, ValidationError
from memory_journal.utils.id_generator import is_valid_id

OWNER = 'user_owner111'
OTHER = 'user_other222'


class MemoryRepositoryTestCase(JournalTestCase):

    def make(self, user_id, created_at, **overrides):
        data = {'title': 'Entry', 'description': 'Something happened', 'date': '2023-01-01', 'type': 'memory'}
        data.update(overrides)
        memory = self.memories.create(user_id, data)
        # Pinned so ordering does not depend on the clock
        self.store.indices['memory'][memory.id]['created_at'] = created_at
        return memory


class CreateAndReadTests(MemoryRepositoryTestCase):

    def test_create_assigns_id_owner_and_defaults(self) -> None:
        memory = self.memories.create(OWNER, memory_payload())

        self.assertTrue(is_valid_id(memory.id, 'mem'))
        self.assertEqual(memory.user_id, OWNER)
        self.assertEqual(memory.tags, ['summer', 'family'])
        self.assertEqual(memory.created_at, memory.updated_at)
        self.assertEqual(self.store.indices['memory'][memory.id]['title'], 'Day at the beach')

    def test_create_validates_owner_and_payload(self) -> None:
        with self.assertRaises(ValidationError):
            self.memories.create('nobody', memory_payload())
        with self.assertRaises(ValidationError):
            self.memories.create(OWNER, {'title': 'Only a title'})

    def test_id_collision_is_a_conflict(self) -> None:
        with mock.patch('memory_journal.services.memory_repository.generate_memory_id', return_value='mem_fixed123'):
            self.memories.create(OWNER, memory_payload())
            with self.assertRaises(ConflictError):
                self.memories.create(OWNER, memory_payload())

    def test_private_memory_visible_only_to_owner(self) -> None:
        memory = self.memories.create(OWNER, memory_payload(is_private=True))

        self.assertEqual(self.memories.get_by_id(memory.id, OWNER).id, memory.id)
        self.assertIsNone(self.memories.get_by_id(memory.id, OTHER))
        self.assertIsNone(self.memories.get_by_id(memory.id))

    def test_public_memory_visible_to_anyone(self) -> None:
        memory = self.memories.create(OWNER, memory_payload())

        self.assertEqual(self.memories.get_by_id(memory.id).id, memory.id)
        self.assertEqual(self.memories.get_by_id(memory.id, OTHER).id, memory.id)

    def test_get_by_id_validates_ids(self) -> None:
        with self.assertRaises(ValidationError):
            self.memories.get_by_id('user_abc12345')
        with self.assertRaises(ValidationError):
            self.memories.get_by_id('mem_abc12345', 'bad')
        self.assertIsNone(self.memories.get_by_id('mem_missing1'))


class ListingTests(MemoryRepositoryTestCase):

    def test_list_by_owner_orders_newest_first(self) -> None:
        old = self.make(OWNER, '2023-01-01T00:00:00+00:00')
        new = self.make(OWNER, '2023-06-01T00:00:00+00:00', is_private=True)
        self.make(OTHER, '2023-07-01T00:00:00+00:00')

        self.assertEqual([m.id for m in self.memories.list_by_owner(OWNER)], [new.id, old.id])
        self.assertEqual([m.id for m in self.memories.list_by_owner(OWNER, include_private=False)], [old.id])

    def test_list_public_pages_across_owners(self) -> None:
        first = self.make(OWNER, '2023-01-01T00:00:00+00:00')
        self.make(OWNER, '2023-02-01T00:00:00+00:00', is_private=True)
        second = self.make(OTHER, '2023-03-01T00:00:00+00:00')

        self.assertEqual([m.id for m in self.memories.list_public()], [second.id, first.id])
        self.assertEqual([m.id for m in self.memories.list_public(limit=1, offset=1)], [first.id])
        self.assertEqual(len(self.memories.list_public(limit=1000)), 2)


class SearchTests(MemoryRepositoryTestCase):

    def test_matches_title_description_and_tags(self) -> None:
        by_title = self.make(OWNER, '2023-01-01T00:00:00+00:00', title='Beach day')
        by_description = self.make(OTHER, '2023-02-01T00:00:00+00:00', description='Went to the BEACH')
        by_tag = self.make(OTHER, '2023-03-01T00:00:00+00:00', tags=['beachlife'])
        self.make(OTHER, '2023-04-01T00:00:00+00:00', title='Mountain')

        self.assertEqual([m.id for m in self.memories.search('beach')], [by_tag.id, by_description.id, by_title.id])

    def test_never_returns_private_without_identity(self) -> None:
        self.make(OWNER, '2023-01-01T00:00:00+00:00', title='Secret beach', is_private=True)
        public = self.make(OTHER, '2023-02-01T00:00:00+00:00', title='Open beach')

        self.assertEqual([m.id for m in self.memories.search('beach')], [public.id])
        self.assertEqual([m.id for m in self.memories.search('beach', None, include_private=True)], [public.id])
        self.assertEqual([m.id for m in self.memories.search('beach', OTHER, include_private=True)], [public.id])

    def test_identity_with_private_is_scoped_to_owner(self) -> None:
        private = self.make(OWNER, '2023-01-01T00:00:00+00:00', title='Secret beach', is_private=True)
        own_public = self.make(OWNER, '2023-02-01T00:00:00+00:00', title='My beach')
        others = self.make(OTHER, '2023-03-01T00:00:00+00:00', title='Their beach')

        self.assertEqual([m.id for m in self.memories.search('beach', OWNER, include_private=True)],
                         [own_public.id, private.id])
        self.assertEqual([m.id for m in self.memories.search('beach', OWNER, include_private=False)],
                         [others.id, own_public.id])

    def test_blank_query_returns_nothing(self) -> None:
        self.memories.create(OWNER, memory_payload())
        self.assertEqual(self.memories.search(''), [])
        self.assertEqual(self.memories.search('   '), [])


class WriteTests(MemoryRepositoryTestCase):

    def setUp(self) -> None:
        super().setUp()
        self.memory = self.memories.create(OWNER, memory_payload())

    def test_update_by_owner(self) -> None:
        updated = self.memories.update(self.memory.id, OWNER, {'title': 'Renamed', 'is_private': True, 'user_id': OTHER})

        self.assertEqual(updated.title, 'Renamed')
        self.assertTrue(updated.is_private)
        self.assertEqual(updated.user_id, OWNER)
        self.assertEqual(updated.created_at, self.memory.created_at)
        self.assertGreaterEqual(updated.updated_at, self.memory.updated_at)

    def test_non_owner_update_and_delete_look_like_missing(self) -> None:
        self.assertIsNone(self.memories.update(self.memory.id, OTHER, {'title': 'Hijacked'}))
        self.assertIsNone(self.memories.update('mem_missing1', OTHER, {'title': 'Hijacked'}))
        self.assertFalse(self.memories.delete(self.memory.id, OTHER))
        self.assertFalse(self.memories.delete('mem_missing1', OTHER))
        self.assertEqual(self.store.indices['memory'][self.memory.id]['title'], 'Day at the beach')

    def test_update_rejects_invalid_patch(self) -> None:
        with self.assertRaises(ValidationError):
            self.memories.update(self.memory.id, OWNER, {'type': 'holiday'})

    def test_delete_by_owner(self) -> None:
        self.assertTrue(self.memories.delete(self.memory.id, OWNER))
        self.assertIsNone(self.memories.get_by_id(self.memory.id, OWNER))
        self.assertFalse(self.memories.delete(self.memory.id, OWNER))


if __name__ == '__main__':
    unittest.main()
