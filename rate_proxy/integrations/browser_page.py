from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from rate_proxy.errors import EmptyPageError, NavigationError
from rate_proxy.services.quote_parser import decimal_tokens

MOBILE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
BLOCK_RESOURCE_TYPES = {"image", "media", "font"}

_READY_PREDICATE = "() => /\\d+\\.\\d+/.test((document.body && document.body.innerText) || '')"
_VISIBLE_TEXT = "() => (document.body && document.body.innerText) || ''"


class RawPage(BaseModel):
    path: str
    text: str
    tokens: list[str]


def _block_heavy_resources(route: Any) -> None:
    if route.request.resource_type in BLOCK_RESOURCE_TYPES:
        route.abort()
    else:
        route.continue_()


class PageFetcher:
    """Loads one quote page in an isolated browser context."""

    def __init__(
        self,
        *,
        host: str,
        nav_timeout_sec: float = 25.0,
        ready_timeout_sec: float = 5.0,
        text_limit: int = 4000,
        max_tokens: int = 20,
        user_agent: str = MOBILE_USER_AGENT,
    ) -> None:
        self.host = host
        self.nav_timeout_ms = int(nav_timeout_sec * 1000)
        self.ready_timeout_ms = int(ready_timeout_sec * 1000)
        self.text_limit = text_limit
        self.max_tokens = max_tokens
        self.user_agent = user_agent

    def url_for(self, path: str) -> str:
        return f"https://{self.host}{path}"

    def _wait_for_content(self, page: Any, path: str) -> None:
        from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

        try:
            page.wait_for_function(_READY_PREDICATE, timeout=self.ready_timeout_ms)
        except PlaywrightTimeoutError:
            print(f"[FETCH][ready_timeout] path={path}", flush=True)

    def fetch(self, session: Any, path: str) -> RawPage:
        from playwright.sync_api import Error as PlaywrightError

        context = None
        try:
            context = session.browser.new_context(
                user_agent=self.user_agent,
                viewport={"width": 390, "height": 844},
                is_mobile=True,
                locale="pt-BR",
            )
            context.route("**/*", _block_heavy_resources)
            page = context.new_page()
            page.goto(self.url_for(path), wait_until="domcontentloaded", timeout=self.nav_timeout_ms)
            self._wait_for_content(page, path)
            text = str(page.evaluate(_VISIBLE_TEXT) or "")
        except PlaywrightError as exc:
            raise NavigationError(f"navigation failed for {path}: {exc}") from exc
        finally:
            if context is not None:
                try:
                    context.close()
                except Exception as exc:
                    print(f"[FETCH][context_close_error] path={path} error={exc}", flush=True)

        tokens = decimal_tokens(text, self.max_tokens)
        if not tokens:
            raise EmptyPageError(f"no decimal tokens on {path}")
        return RawPage(path=path, text=text[: self.text_limit], tokens=tokens)
