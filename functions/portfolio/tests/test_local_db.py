import json
import os
import tempfile
import unittest

from portfolio.local_db import (
    InMemoryLocalStore,
    LegacyJsonStore,
    LocalStoreError,
    SqlLocalStore,
)


class SqlLocalStoreTests(unittest.TestCase):
    """
    Uses in-memory SQLite for the SQLAlchemy-backed local database.
    """

    def setUp(self):
        self.store = SqlLocalStore("sqlite+pysqlite:///:memory:")

    def test_missing_key_returns_none(self):
        self.assertIsNone(self.store.get("projects"))

    def test_put_get_and_replace(self):
        self.store.put("projects", [{"id": "a"}])
        self.assertEqual(self.store.get("projects"), [{"id": "a"}])

        self.store.put("projects", [{"id": "b"}, {"id": "c"}])
        self.assertEqual(self.store.get("projects"), [{"id": "b"}, {"id": "c"}])

    def test_delete(self):
        self.store.put("categories", [])
        self.store.delete("categories")
        self.assertIsNone(self.store.get("categories"))
        # Deleting a missing key is a no-op.
        self.store.delete("categories")

    def test_write_failure_raises_local_store_error(self):
        with self.assertRaises(LocalStoreError):
            self.store.put("projects", [{"id": object()}])

    def test_requires_url(self):
        with self.assertRaises(ValueError):
            SqlLocalStore("")


class InMemoryLocalStoreTests(unittest.TestCase):
    def test_values_are_copied(self):
        store = InMemoryLocalStore()
        records = [{"id": "a"}]
        store.put("projects", records)
        records[0]["id"] = "changed"
        loaded = store.get("projects")
        self.assertEqual(loaded, [{"id": "a"}])
        loaded.append({"id": "b"})
        self.assertEqual(store.get("projects"), [{"id": "a"}])


class LegacyJsonStoreTests(unittest.TestCase):
    def setUp(self):
        handle, self.path = tempfile.mkstemp(suffix=".json")
        os.close(handle)

    def tearDown(self):
        if os.path.exists(self.path):
            os.remove(self.path)

    def _write(self, data):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(data if isinstance(data, str) else json.dumps(data))

    def test_reads_json_encoded_string_values(self):
        self._write({"objxdesign_projects": json.dumps([{"id": "1"}])})
        store = LegacyJsonStore(self.path)
        self.assertEqual(store.read("objxdesign_projects"), [{"id": "1"}])

    def test_reads_plain_lists(self):
        self._write({"objxdesign_categories": [{"id": "c"}]})
        store = LegacyJsonStore(self.path)
        self.assertEqual(store.read("objxdesign_categories"), [{"id": "c"}])

    def test_corrupt_entries_read_as_none(self):
        self._write({"objxdesign_projects": "{not json"})
        self.assertIsNone(LegacyJsonStore(self.path).read("objxdesign_projects"))

        self._write("garbage")
        self.assertIsNone(LegacyJsonStore(self.path).read("objxdesign_projects"))

    def test_missing_file(self):
        os.remove(self.path)
        store = LegacyJsonStore(self.path)
        self.assertIsNone(store.read("objxdesign_projects"))
        store.remove("objxdesign_projects")
        self.assertFalse(os.path.exists(self.path))

    def test_remove_keeps_other_entries(self):
        self._write({"objxdesign_projects": [], "objxdesign_categories": []})
        store = LegacyJsonStore(self.path)
        store.remove("objxdesign_projects")
        self.assertIsNone(store.read("objxdesign_projects"))
        self.assertEqual(store.read("objxdesign_categories"), [])


if __name__ == "__main__":
    unittest.main()
