import unittest
from pathlib import Path
from unittest.mock import patch

from timeforged.models import ActivityType, EventType
from timeforged.watcher.enrichment import EventEnricher, machine_identity
from timeforged.watcher.git_branch import GitBranchCache
from timeforged.watcher.registry import WatchRegistry


class MachineIdentityTests(unittest.TestCase):
    def setUp(self) -> None:
        machine_identity.cache_clear()

    def tearDown(self) -> None:
        machine_identity.cache_clear()

    def test_prefers_hostname_variable(self) -> None:
        with patch.dict("os.environ", {"HOSTNAME": "devbox", "HOST": "other"}):
            self.assertEqual(machine_identity(), "devbox")

    def test_falls_back_to_socket_hostname(self) -> None:
        with patch.dict("os.environ", {"HOSTNAME": "", "HOST": ""}), patch(
            "timeforged.watcher.enrichment.socket.gethostname", return_value="laptop"
        ):
            self.assertEqual(machine_identity(), "laptop")

    def test_value_is_read_once(self) -> None:
        with patch.dict("os.environ", {"HOSTNAME": "first"}):
            self.assertEqual(machine_identity(), "first")
        with patch.dict("os.environ", {"HOSTNAME": "second"}):
            self.assertEqual(machine_identity(), "first")


class EventEnricherTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.registry = WatchRegistry()
        self.registry.add(Path("/proj"))
        self.lookups: list[Path] = []

        def lookup(directory: Path):
            self.lookups.append(directory)
            return "main" if directory == Path("/proj/app") else None

        self.enricher = EventEnricher(
            self.registry, GitBranchCache(60, lookup=lookup), "local", machine="devbox"
        )

    async def test_enriches_project_language_and_branch(self) -> None:
        event = await self.enricher.enrich(Path("/proj/app/src/a.py"))
        self.assertEqual(event.user_id, "local")
        self.assertEqual(event.event_type, EventType.FILE)
        self.assertEqual(event.entity, "/proj/app/src/a.py")
        self.assertEqual(event.project, "app")
        self.assertEqual(event.language, "Python")
        self.assertEqual(event.branch, "main")
        self.assertEqual(event.activity, ActivityType.CODING)
        self.assertEqual(event.machine, "devbox")
        self.assertIsNotNone(event.timestamp.tzinfo)
        self.assertEqual(self.lookups, [Path("/proj/app")])

    async def test_failed_branch_lookup_keeps_event(self) -> None:
        event = await self.enricher.enrich(Path("/proj/scratch/notes.txt"))
        self.assertEqual(event.project, "scratch")
        self.assertIsNone(event.branch)
        self.assertIsNone(event.language)

    async def test_unmatched_path_is_dropped(self) -> None:
        self.assertIsNone(await self.enricher.enrich(Path("/tmp/a.py")))
        self.assertEqual(self.lookups, [])


if __name__ == "__main__":
    unittest.main()
