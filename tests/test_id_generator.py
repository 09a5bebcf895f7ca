import unittest

from memory_journal.utils.id_generator import (ALPHABET, generate_id, generate_memory_id, generate_session_id,
                                               generate_user_id, get_id_prefix, is_valid_id)


class GenerateIdTests(unittest.TestCase):

    def test_generated_ids_have_prefix_and_length(self) -> None:
        user_id = generate_user_id()
        memory_id = generate_memory_id()
        session_id = generate_session_id()

        self.assertTrue(user_id.startswith('user_'))
        self.assertEqual(len(user_id.split('_')[1]), 8)
        self.assertTrue(memory_id.startswith('mem_'))
        self.assertEqual(len(memory_id.split('_')[1]), 8)
        self.assertTrue(session_id.startswith('sess_'))
        self.assertEqual(len(session_id.split('_')[1]), 12)

    def test_generated_ids_use_lowercase_alphanumerics(self) -> None:
        for _ in range(50):
            random_part = generate_user_id().split('_')[1]
            self.assertTrue(all(ch in ALPHABET for ch in random_part))

    def test_generated_ids_are_distinct(self) -> None:
        ids = {generate_memory_id() for _ in range(1000)}
        self.assertEqual(len(ids), 1000)

    def test_custom_prefix_and_length(self) -> None:
        value = generate_id('tag', length=10)
        self.assertEqual(len(value), len('tag_') + 10)
        self.assertTrue(is_valid_id(value, 'tag'))

    def test_rejects_bad_prefix(self) -> None:
        for prefix in ('', 'bad_prefix'):
            with self.subTest(prefix=prefix):
                with self.assertRaises(ValueError):
                    generate_id(prefix)


class ValidateIdTests(unittest.TestCase):

    def test_accepts_well_formed(self) -> None:
        for value in ('user_abc123', 'mem_a5b8c3d1', 'user_k7x9m2p4q1'):
            with self.subTest(value=value):
                self.assertTrue(is_valid_id(value))

    def test_rejects_malformed(self) -> None:
        for value in (None, '', 123, 'user', 'user_', '_abc123', 'user_abc12', 'user_ABC123', 'user_abc-123',
                      'user_abc_123', 'user_abc123\n'):
            with self.subTest(value=value):
                self.assertFalse(is_valid_id(value))

    def test_checks_expected_prefix(self) -> None:
        self.assertTrue(is_valid_id('user_abc123', 'user'))
        self.assertFalse(is_valid_id('mem_abc123', 'user'))

    def test_get_id_prefix(self) -> None:
        self.assertEqual(get_id_prefix('mem_a5b8c3d1'), 'mem')
        self.assertIsNone(get_id_prefix('not-an-id'))


if __name__ == '__main__':
    unittest.main()
