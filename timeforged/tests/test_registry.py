import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from timeforged.watcher.registry import WatchRegistry, canonicalize


class WatchRegistryTests(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = WatchRegistry()
        self.root = Path("/proj")
        self.registry.add(self.root)

    def test_add_is_idempotent(self) -> None:
        self.assertFalse(self.registry.add(Path("/proj")))
        self.assertEqual(len(self.registry), 1)

    def test_resolve_uses_first_component_as_project(self) -> None:
        match = self.registry.resolve(Path("/proj/app/src/a.py"))
        self.assertIsNotNone(match)
        self.assertEqual(match.root, Path("/proj"))
        self.assertEqual(match.project, "app")
        self.assertEqual(match.project_dir, Path("/proj/app"))

    def test_hidden_directory_has_no_project(self) -> None:
        match = self.registry.resolve(Path("/proj/.config/settings.json"))
        self.assertIsNotNone(match)
        self.assertIsNone(match.project)
        self.assertEqual(match.project_dir, Path("/proj"))

    def test_file_directly_in_root_names_its_own_project(self) -> None:
        match = self.registry.resolve(Path("/proj/notes.md"))
        self.assertIsNotNone(match)
        self.assertEqual(match.project, "notes.md")
        self.assertEqual(match.project_dir, Path("/proj"))

    def test_hidden_file_in_root_has_no_project(self) -> None:
        match = self.registry.resolve(Path("/proj/.envrc"))
        self.assertIsNotNone(match)
        self.assertIsNone(match.project)

    def test_unrelated_path_does_not_match(self) -> None:
        self.assertIsNone(self.registry.resolve(Path("/elsewhere/app/a.py")))
        self.assertIsNone(self.registry.resolve(Path("/project/app/a.py")))

    def test_unwatched_root_stops_matching(self) -> None:
        self.assertTrue(self.registry.remove(Path("/proj")))
        self.assertIsNone(self.registry.resolve(Path("/proj/app/a.py")))
        self.assertFalse(self.registry.remove(Path("/proj")))

    def test_unwatch_does_not_fall_back_to_another_root(self) -> None:
        self.registry.add(Path("/work"))
        self.registry.remove(Path("/proj"))
        self.assertIsNone(self.registry.resolve(Path("/proj/app/a.py")))
        self.assertEqual(self.registry.resolve(Path("/work/api/main.go")).project, "api")

    def test_snapshot_reports_roots(self) -> None:
        snapshot = self.registry.snapshot()
        self.assertEqual([r.path for r in snapshot], [str(Path("/proj"))])
        self.assertEqual(self.registry.roots(), [Path("/proj")])

    def test_add_keeps_given_timestamp(self) -> None:
        added_at = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)
        self.assertTrue(self.registry.add(Path("/work"), added_at))
        stamps = {r.path: r.added_at for r in self.registry.snapshot()}
        self.assertEqual(stamps[str(Path("/work"))], added_at)

    def test_canonicalize_resolves_symlinks(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            real = Path(tmp) / "real"
            real.mkdir()
            link = Path(tmp) / "link"
            link.symlink_to(real, target_is_directory=True)
            self.assertEqual(canonicalize(link), real.resolve())


if __name__ == "__main__":
    unittest.main()
