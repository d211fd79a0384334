from __future__ import annotations

import threading
from typing import Any, Callable

from rate_proxy.errors import SessionLaunchError

UNSTARTED = "UNSTARTED"
READY = "READY"
DEAD = "DEAD"

_LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage", "--disable-gpu"]


class BrowserSession:
    def __init__(self, driver: Any, browser: Any) -> None:
        self.driver = driver
        self.browser = browser

    def is_alive(self) -> bool:
        try:
            return bool(self.browser.is_connected())
        except Exception:
            return False


class BrowserSessionManager:
    """Owns the single shared Chromium session.

    Sync Playwright objects are thread-affine: every call here must come
    from the refresh worker thread. ``is_alive`` only reads local state and
    is safe from request handlers.
    """

    def __init__(
        self,
        *,
        executable_path: str | None = None,
        headless: bool = True,
        playwright_factory: Callable[[], Any] | None = None,
    ) -> None:
        self.executable_path = executable_path
        self.headless = headless
        self._playwright_factory = playwright_factory or self._default_playwright_factory
        self._lock = threading.Lock()
        self._session: BrowserSession | None = None
        self.state = UNSTARTED
        self.launches = 0
        self.last_error: str | None = None

    def _default_playwright_factory(self) -> Any:
        from playwright.sync_api import sync_playwright

        return sync_playwright()

    def _launch(self) -> BrowserSession:
        driver = None
        try:
            driver = self._playwright_factory().start()
            browser = driver.chromium.launch(
                headless=self.headless,
                executable_path=self.executable_path,
                args=_LAUNCH_ARGS,
            )
        except Exception as exc:
            self.state = DEAD
            self.last_error = str(exc)
            print(f"[BROWSER][launch_error] error={exc}", flush=True)
            if driver is not None:
                self._stop_quietly(driver)
            raise SessionLaunchError(f"browser launch failed: {exc}") from exc

        self.launches += 1
        self.state = READY
        self.last_error = None
        print(f"[BROWSER][launch] launches={self.launches} headless={self.headless}", flush=True)
        return BrowserSession(driver, browser)

    @staticmethod
    def _stop_quietly(driver: Any) -> None:
        try:
            driver.stop()
        except Exception as exc:
            print(f"[BROWSER][driver_stop_error] error={exc}", flush=True)

    def _teardown(self) -> None:
        session, self._session = self._session, None
        if session is None:
            return
        try:
            session.browser.close()
        except Exception as exc:
            print(f"[BROWSER][close_error] error={exc}", flush=True)
        self._stop_quietly(session.driver)

    def is_alive(self) -> bool:
        session = self._session
        return self.state == READY and session is not None and session.is_alive()

    def acquire(self) -> BrowserSession:
        with self._lock:
            if self.state == READY and self._session is not None and self._session.is_alive():
                return self._session
            if self._session is not None:
                self.state = DEAD
                self._teardown()
            self._session = self._launch()
            return self._session

    def mark_dead(self) -> None:
        self.state = DEAD

    def relaunch(self) -> BrowserSession:
        with self._lock:
            self.state = DEAD
            self._teardown()
            self._session = self._launch()
            return self._session

    def terminate(self) -> None:
        with self._lock:
            self._teardown()
            self.state = UNSTARTED
            print("[BROWSER][terminate]", flush=True)
