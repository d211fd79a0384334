from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from rate_proxy.api.routes import router
from rate_proxy.config.instruments import INSTRUMENTS
from rate_proxy.config.settings import Settings, get_settings
from rate_proxy.integrations.browser_page import PageFetcher
from rate_proxy.integrations.http_page import HttpPageFetcher, HttpSessionManager
from rate_proxy.services.log_buffer import LogBuffer
from rate_proxy.services.rate_cache import RateCache
from rate_proxy.services.refresh_scheduler import RefreshScheduler
from rate_proxy.services.session_state import BrowserSessionManager


def build_fetch_backend(settings: Settings):
    if settings.FETCH_BACKEND == "http":
        return (
            HttpSessionManager(),
            HttpPageFetcher(host=settings.QUOTE_HOST, timeout_sec=min(settings.NAV_TIMEOUT_SEC, 15.0)),
        )
    return (
        BrowserSessionManager(
            executable_path=settings.BROWSER_EXECUTABLE_PATH,
            headless=settings.BROWSER_HEADLESS,
        ),
        PageFetcher(
            host=settings.QUOTE_HOST,
            nav_timeout_sec=settings.NAV_TIMEOUT_SEC,
            ready_timeout_sec=settings.READY_TIMEOUT_SEC,
        ),
    )


def pass_time_bound(settings: Settings) -> float:
    per_instrument = settings.NAV_TIMEOUT_SEC + settings.READY_TIMEOUT_SEC
    return len(INSTRUMENTS) * per_instrument + 5.0


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    session_manager, fetcher = build_fetch_backend(settings)
    rate_cache = RateCache()
    log_buffer = LogBuffer(capacity=settings.LOG_BUFFER_SIZE)
    scheduler = RefreshScheduler(
        session_manager=session_manager,
        fetcher=fetcher,
        rate_cache=rate_cache,
        log_buffer=log_buffer,
        interval_sec=settings.REFRESH_INTERVAL_SEC,
        warmup_sec=settings.REFRESH_WARMUP_SEC,
        join_timeout_sec=pass_time_bound(settings),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.log_buffer.append(f"proxy on port {settings.PORT} backend={settings.FETCH_BACKEND}")
        app.state.refresh_scheduler.start()
        try:
            yield
        finally:
            app.state.refresh_scheduler.stop()

    app = FastAPI(title="Rate Proxy", version="0.1.0", lifespan=lifespan)
    app.include_router(router)

    app.state.settings = settings
    app.state.session_manager = session_manager
    app.state.rate_cache = rate_cache
    app.state.log_buffer = log_buffer
    app.state.refresh_scheduler = scheduler
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.PORT)


if __name__ == "__main__":
    run()
