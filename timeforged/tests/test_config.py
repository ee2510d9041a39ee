import os
import unittest
from dataclasses import FrozenInstanceError
from unittest.mock import patch

from timeforged import config
from timeforged.config import WatcherSettings


class EnvHelperTests(unittest.TestCase):
    def test_env_int_falls_back_on_garbage(self) -> None:
        with patch.dict(os.environ, {"TF_TEST_INT": "abc"}):
            self.assertEqual(config._env_int("TF_TEST_INT", 7), 7)
        with patch.dict(os.environ, {"TF_TEST_INT": "42"}):
            self.assertEqual(config._env_int("TF_TEST_INT", 7), 42)

    def test_env_bool(self) -> None:
        with patch.dict(os.environ, {"TF_TEST_BOOL": "Yes"}):
            self.assertTrue(config._env_bool("TF_TEST_BOOL"))
        with patch.dict(os.environ, {"TF_TEST_BOOL": "0"}):
            self.assertFalse(config._env_bool("TF_TEST_BOOL", True))

    def test_env_list_splits_and_trims(self) -> None:
        with patch.dict(os.environ, {"TF_TEST_LIST": " *.swp, coverage ,,"}):
            self.assertEqual(config._env_list("TF_TEST_LIST"), ("*.swp", "coverage"))


class WatcherSettingsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = WatcherSettings()
        self.assertEqual(settings.debounce_secs, 30)
        self.assertEqual(settings.window_poll_secs, 15)
        self.assertFalse(settings.enable_window_tracker)

    def test_from_config_clamps_values(self) -> None:
        with patch.multiple(config, DEBOUNCE_SECS=-5, WINDOW_POLL_SECS=0, RAW_CHANGE_QUEUE_SIZE=0):
            settings = WatcherSettings.from_config()
        self.assertEqual(settings.debounce_secs, 0)
        self.assertEqual(settings.window_poll_secs, 1)
        self.assertEqual(settings.raw_queue_size, 1)

    def test_settings_are_frozen(self) -> None:
        with self.assertRaises(FrozenInstanceError):
            WatcherSettings().debounce_secs = 1  # type: ignore[misc]


if __name__ == "__main__":
    unittest.main()
