import json
import tempfile
import unittest
from pathlib import Path

from timeforged.watch_list import WatchListStore


class WatchListStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "nested" / "watched.json"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_missing_file_loads_empty(self) -> None:
        self.assertEqual(WatchListStore(self.path).list(), [])

    def test_add_persists_and_reloads(self) -> None:
        store = WatchListStore(self.path)
        self.assertIsNotNone(store.add(Path("/home/me/code")))
        self.assertIsNone(store.add(Path("/home/me/code")))

        data = json.loads(self.path.read_text())
        self.assertEqual(len(data["dirs"]), 1)
        self.assertEqual(data["dirs"][0]["path"], "/home/me/code")
        self.assertIn("added_at", data["dirs"][0])

        reloaded = WatchListStore(self.path)
        self.assertEqual(reloaded.paths(), [Path("/home/me/code")])
        self.assertEqual(reloaded.list()[0].added_at, store.list()[0].added_at)

    def test_remove(self) -> None:
        store = WatchListStore(self.path)
        store.add(Path("/home/me/code"))
        self.assertTrue(store.remove(Path("/home/me/code")))
        self.assertFalse(store.remove(Path("/home/me/code")))
        self.assertEqual(WatchListStore(self.path).list(), [])

    def test_corrupt_file_loads_empty(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{not json")
        with self.assertLogs("timeforged", level="ERROR"):
            store = WatchListStore(self.path)
        self.assertEqual(store.list(), [])

    def test_malformed_entries_are_skipped(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text(json.dumps({
            "dirs": [
                {"path": "/ok", "added_at": "2024-03-04T09:00:00Z"},
                {"path": "/no-date"},
            ]
        }))
        with self.assertLogs("timeforged", level="ERROR"):
            store = WatchListStore(self.path)
        self.assertEqual(store.paths(), [Path("/ok")])


if __name__ == "__main__":
    unittest.main()
