from __future__ import annotations

import threading
from typing import Any, Callable

import requests
from bs4 import BeautifulSoup

from rate_proxy.errors import EmptyPageError, NavigationError
from rate_proxy.integrations.browser_page import MOBILE_USER_AGENT, RawPage
from rate_proxy.services.quote_parser import decimal_tokens
from rate_proxy.services.session_state import DEAD, READY, UNSTARTED


def html_to_text(html: str) -> str:
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    # entities such as &nbsp; come back as unicode whitespace
    return " ".join(soup.get_text(" ", strip=True).split())


class HttpSessionManager:
    """Browserless counterpart of BrowserSessionManager backed by requests.Session."""

    def __init__(self, session_factory: Callable[[], Any] | None = None) -> None:
        self._session_factory = session_factory or requests.Session
        self._lock = threading.Lock()
        self._session: Any | None = None
        self.state = UNSTARTED
        self.launches = 0
        self.last_error: str | None = None

    def _close(self) -> None:
        session, self._session = self._session, None
        if session is None:
            return
        try:
            session.close()
        except Exception as exc:
            print(f"[HTTP][close_error] error={exc}", flush=True)

    def _open(self) -> Any:
        self._session = self._session_factory()
        self.launches += 1
        self.state = READY
        print(f"[HTTP][session_open] launches={self.launches}", flush=True)
        return self._session

    def is_alive(self) -> bool:
        return self.state == READY and self._session is not None

    def acquire(self) -> Any:
        with self._lock:
            if self.is_alive():
                return self._session
            self._close()
            return self._open()

    def mark_dead(self) -> None:
        self.state = DEAD

    def relaunch(self) -> Any:
        with self._lock:
            self.state = DEAD
            self._close()
            return self._open()

    def terminate(self) -> None:
        with self._lock:
            self._close()
            self.state = UNSTARTED


class HttpPageFetcher:
    def __init__(
        self,
        *,
        host: str,
        timeout_sec: float = 15.0,
        text_limit: int = 4000,
        max_tokens: int = 20,
        user_agent: str = MOBILE_USER_AGENT,
    ) -> None:
        self.host = host
        self.timeout_sec = timeout_sec
        self.text_limit = text_limit
        self.max_tokens = max_tokens
        self.user_agent = user_agent

    def url_for(self, path: str) -> str:
        return f"https://{self.host}{path}"

    def fetch(self, session: Any, path: str) -> RawPage:
        try:
            response = session.get(
                self.url_for(path),
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                    "Accept-Language": "pt-BR,pt;q=0.9,en;q=0.8",
                },
                timeout=self.timeout_sec,
            )
        except requests.exceptions.RequestException as exc:
            raise NavigationError(f"request failed for {path}: {exc}") from exc

        if response.status_code != 200:
            raise NavigationError(f"HTTP {response.status_code} for {path}")

        text = html_to_text(response.text)
        tokens = decimal_tokens(text, self.max_tokens)
        if not tokens:
            raise EmptyPageError(f"no decimal tokens on {path}")
        return RawPage(path=path, text=text[: self.text_limit], tokens=tokens)
