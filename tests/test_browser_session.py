import unittest
from unittest.mock import MagicMock

from rate_proxy.errors import SessionLaunchError
from rate_proxy.services.session_state import DEAD, READY, UNSTARTED, BrowserSessionManager


class FakePlaywright:
    def __init__(self, fail_launches: int = 0) -> None:
        self.fail_launches = fail_launches
        self.browsers: list[MagicMock] = []
        self.drivers: list[MagicMock] = []

    def __call__(self):
        factory = MagicMock()
        driver = MagicMock()
        factory.start.return_value = driver
        self.drivers.append(driver)

        def launch(**kwargs):
            if self.fail_launches:
                self.fail_launches -= 1
                raise RuntimeError("chromium missing")
            browser = MagicMock()
            browser.is_connected.return_value = True
            self.browsers.append(browser)
            return browser

        driver.chromium.launch.side_effect = launch
        return factory


class TestBrowserSessionManager(unittest.TestCase):
    def test_acquire_is_lazy_and_idempotent(self):
        playwright = FakePlaywright()
        manager = BrowserSessionManager(playwright_factory=playwright, executable_path="/usr/bin/chromium")

        self.assertEqual(manager.state, UNSTARTED)
        self.assertFalse(manager.is_alive())

        first = manager.acquire()
        second = manager.acquire()

        self.assertIs(first, second)
        self.assertEqual(manager.state, READY)
        self.assertTrue(manager.is_alive())
        self.assertEqual(manager.launches, 1)
        launch_kwargs = playwright.drivers[0].chromium.launch.call_args.kwargs
        self.assertEqual(launch_kwargs["executable_path"], "/usr/bin/chromium")
        self.assertTrue(launch_kwargs["headless"])

    def test_disconnected_browser_is_replaced_on_acquire(self):
        playwright = FakePlaywright()
        manager = BrowserSessionManager(playwright_factory=playwright)
        first = manager.acquire()
        playwright.browsers[0].is_connected.return_value = False

        second = manager.acquire()

        self.assertIsNot(first, second)
        self.assertEqual(manager.launches, 2)
        playwright.browsers[0].close.assert_called_once_with()
        playwright.drivers[0].stop.assert_called_once_with()

    def test_relaunch_swallows_teardown_errors(self):
        playwright = FakePlaywright()
        manager = BrowserSessionManager(playwright_factory=playwright)
        manager.acquire()
        playwright.browsers[0].close.side_effect = RuntimeError("frame detached")

        session = manager.relaunch()

        self.assertIs(session.browser, playwright.browsers[1])
        self.assertEqual(manager.state, READY)
        self.assertEqual(manager.launches, 2)

    def test_launch_failure_surfaces_and_marks_dead(self):
        playwright = FakePlaywright(fail_launches=1)
        manager = BrowserSessionManager(playwright_factory=playwright)

        with self.assertRaises(SessionLaunchError):
            manager.acquire()

        self.assertEqual(manager.state, DEAD)
        self.assertEqual(manager.last_error, "chromium missing")
        playwright.drivers[0].stop.assert_called_once_with()

        manager.acquire()
        self.assertEqual(manager.state, READY)

    def test_mark_dead_reports_not_alive(self):
        manager = BrowserSessionManager(playwright_factory=FakePlaywright())
        manager.acquire()

        manager.mark_dead()

        self.assertFalse(manager.is_alive())

    def test_acquire_after_mark_dead_launches_fresh_session(self):
        playwright = FakePlaywright()
        manager = BrowserSessionManager(playwright_factory=playwright)
        first = manager.acquire()

        manager.mark_dead()
        second = manager.acquire()

        self.assertIsNot(first, second)
        self.assertEqual(manager.state, READY)
        self.assertTrue(manager.is_alive())
        self.assertEqual(manager.launches, 2)
        playwright.browsers[0].close.assert_called_once_with()
        playwright.drivers[0].stop.assert_called_once_with()

    def test_terminate_closes_session(self):
        playwright = FakePlaywright()
        manager = BrowserSessionManager(playwright_factory=playwright)
        manager.acquire()

        manager.terminate()

        self.assertEqual(manager.state, UNSTARTED)
        self.assertFalse(manager.is_alive())
        playwright.browsers[0].close.assert_called_once_with()


if __name__ == "__main__":
    unittest.main()
