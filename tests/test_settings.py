import os
import unittest
from unittest.mock import patch

from pydantic import ValidationError

from rate_proxy.config.settings import Settings


class TestSettings(unittest.TestCase):
    def test_defaults_apply_without_env(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings.from_env()

        self.assertEqual(settings.PORT, 3099)
        self.assertIsNone(settings.BROWSER_EXECUTABLE_PATH)
        self.assertTrue(settings.BROWSER_HEADLESS)
        self.assertEqual(settings.QUOTE_HOST, "m.netdania.com")
        self.assertEqual(settings.FETCH_BACKEND, "browser")
        self.assertEqual(settings.REFRESH_INTERVAL_SEC, 60.0)
        self.assertEqual(settings.LOG_BUFFER_SIZE, 50)

    def test_env_overrides(self):
        env = {
            "PORT": "8080",
            "BROWSER_EXECUTABLE_PATH": "/usr/bin/chromium",
            "BROWSER_HEADLESS": "0",
            "FETCH_BACKEND": "http",
            "REFRESH_INTERVAL_SEC": "30",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()

        self.assertEqual(settings.PORT, 8080)
        self.assertEqual(settings.BROWSER_EXECUTABLE_PATH, "/usr/bin/chromium")
        self.assertFalse(settings.BROWSER_HEADLESS)
        self.assertEqual(settings.FETCH_BACKEND, "http")
        self.assertEqual(settings.REFRESH_INTERVAL_SEC, 30.0)

    def test_invalid_values_fail_validation(self):
        with patch.dict(os.environ, {"FETCH_BACKEND": "curl"}, clear=True):
            with self.assertRaises(ValidationError):
                Settings.from_env()
        with patch.dict(os.environ, {"REFRESH_INTERVAL_SEC": "0"}, clear=True):
            with self.assertRaises(ValidationError):
                Settings.from_env()

    def test_out_of_range_timeouts_and_buffer_size_are_rejected(self):
        for name, value in [
            ("NAV_TIMEOUT_SEC", "5"),
            ("NAV_TIMEOUT_SEC", "60"),
            ("READY_TIMEOUT_SEC", "30"),
            ("LOG_BUFFER_SIZE", "10"),
            ("LOG_BUFFER_SIZE", "500"),
        ]:
            with self.subTest(name=name, value=value):
                with patch.dict(os.environ, {name: value}, clear=True):
                    with self.assertRaises(ValidationError):
                        Settings.from_env()

    def test_boundary_values_are_accepted(self):
        env = {"NAV_TIMEOUT_SEC": "20", "READY_TIMEOUT_SEC": "5", "LOG_BUFFER_SIZE": "30"}
        with patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()

        self.assertEqual(settings.NAV_TIMEOUT_SEC, 20.0)
        self.assertEqual(settings.LOG_BUFFER_SIZE, 30)


if __name__ == "__main__":
    unittest.main()
