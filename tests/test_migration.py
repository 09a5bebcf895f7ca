import unittest

from fakes import JournalTestCase
from memory_journal.services.migration import id_status, migrate_memories, migrate_users, run_full_migration
from memory_journal.utils.id_generator import is_valid_id


class MigrationTests(JournalTestCase):

    def setUp(self) -> None:
        super().setUp()
        self.store.indices['user']['LegacyUserKey1'] = {
            'email': 'old@x.com',
            'full_name': 'Old Timer',
            'password': self.credentials.hash('secret1'),
            'created_at': '2020-01-01T00:00:00Z'
        }
        self.store.indices['user']['k_modern'] = {
            'id': 'user_modern11',
            'email': 'new@x.com',
            'created_at': '2024-01-01T00:00:00Z'
        }
        self.store.indices['memory']['LegacyMemKey1'] = {
            'user_id': 'LegacyUserKey1',
            'title': 'Before ids',
            'is_private': False,
            'created_at': '2020-02-01T00:00:00Z'
        }
        self.store.indices['memory']['LegacyMemKey2'] = {
            'user_id': 'user_modern11',
            'title': 'Owned by modern user',
            'is_private': False,
            'created_at': '2024-02-01T00:00:00Z'
        }

    def test_id_status_before_migration(self) -> None:
        status = id_status(self.store)

        self.assertEqual(status['users']['total'], 2)
        self.assertEqual(status['users']['with_custom_ids'], 1)
        self.assertEqual(status['users']['sample_id'], 'user_modern11')
        self.assertEqual(status['users']['sample_email'], 'new@x.com')
        self.assertEqual(status['memories']['with_custom_ids'], 0)
        self.assertIsNone(status['memories']['sample_id'])
        self.assertEqual(status['overall_status'], {'migration_needed': True, 'all_migrated': False})

    def test_full_migration_assigns_ids_and_rewrites_owners(self) -> None:
        result = run_full_migration(self.store)

        self.assertEqual(result['users'], {'success': True, 'migrated_count': 1, 'errors': []})
        self.assertEqual(result['memories']['migrated_count'], 2)

        new_user_id = self.store.indices['user']['LegacyUserKey1']['id']
        self.assertTrue(is_valid_id(new_user_id, 'user'))
        self.assertEqual(self.store.indices['user_email']['old@x.com']['user_id'], new_user_id)

        first = self.store.indices['memory']['LegacyMemKey1']
        second = self.store.indices['memory']['LegacyMemKey2']
        self.assertTrue(is_valid_id(first['id'], 'mem'))
        self.assertEqual(first['user_id'], new_user_id)
        self.assertEqual(second['user_id'], 'user_modern11')

        self.assertEqual(id_status(self.store)['overall_status'], {'migration_needed': False, 'all_migrated': True})

    def test_second_run_is_a_no_op(self) -> None:
        run_full_migration(self.store)

        self.assertEqual(migrate_users(self.store)['migrated_count'], 0)
        self.assertEqual(migrate_memories(self.store)['migrated_count'], 0)

    def test_unresolvable_owner_reference_is_kept(self) -> None:
        self.store.indices['memory']['Orphan1'] = {
            'user_id': 'GoneUserKey',
            'title': 'Orphan',
            'created_at': '2020-01-01T00:00:00Z'
        }

        migrate_memories(self.store)
        self.assertEqual(self.store.indices['memory']['Orphan1']['user_id'], 'GoneUserKey')

    def test_migrated_user_can_sign_in(self) -> None:
        migrate_users(self.store)

        user = self.users.authenticate('old@x.com', 'secret1')
        self.assertEqual(user.id, self.store.indices['user']['LegacyUserKey1']['id'])


if __name__ == '__main__':
    unittest.main()
