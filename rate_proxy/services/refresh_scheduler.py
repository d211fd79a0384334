from __future__ import annotations

import threading
import time
from typing import Any, Sequence

from pydantic import BaseModel

from rate_proxy.config.instruments import INSTRUMENTS, PEGS, Instrument, PeggedInstrument
from rate_proxy.errors import FetchError, ParseError, SessionLaunchError
from rate_proxy.schemas.quote import Quote
from rate_proxy.services.log_buffer import LogBuffer
from rate_proxy.services.peg import derive_peg
from rate_proxy.services.quote_parser import parse_quote
from rate_proxy.services.rate_cache import RateCache

IDLE = "IDLE"
RUNNING = "RUNNING"
PUBLISHED = "PUBLISHED"


class InstrumentResult(BaseModel):
    code: str
    ok: bool
    quote: Quote | None = None
    reason: str | None = None
    fatal: bool = False


class RefreshScheduler:
    """Runs one fetch/parse/derive/publish pass per tick on a worker thread.

    Every configured instrument always ends a pass with some quote: live,
    the last published value, or the static default. Passes never overlap.
    """

    def __init__(
        self,
        *,
        session_manager: Any,
        fetcher: Any,
        rate_cache: RateCache,
        log_buffer: LogBuffer,
        instruments: Sequence[Instrument] = INSTRUMENTS,
        pegs: Sequence[PeggedInstrument] = PEGS,
        interval_sec: float = 60.0,
        warmup_sec: float = 2.0,
        join_timeout_sec: float = 5.0,
    ) -> None:
        self.session_manager = session_manager
        self.fetcher = fetcher
        self.rate_cache = rate_cache
        self.log_buffer = log_buffer
        self.instruments = tuple(instruments)
        self.pegs = tuple(pegs)
        self.interval_sec = interval_sec
        self.warmup_sec = warmup_sec
        self.join_timeout_sec = join_timeout_sec
        self.state = IDLE
        self._pass_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._metrics = {
            "passes": 0,
            "fetched": 0,
            "fallbacks": 0,
            "relaunches": 0,
            "pass_errors": 0,
        }
        self.last_pass_ms: int | None = None
        self.last_error: str | None = None

    def _log(self, message: str) -> None:
        self.log_buffer.append(message)

    def _relaunch(self) -> bool:
        self._metrics["relaunches"] += 1
        try:
            self.session_manager.relaunch()
        except SessionLaunchError as exc:
            self.last_error = str(exc)
            self._log(f"relaunch failed: {exc}")
            return False
        self._log("session relaunched")
        return True

    def resolve_instrument(self, instrument: Instrument) -> InstrumentResult:
        code = instrument.code
        try:
            session = self.session_manager.acquire()
        except SessionLaunchError as exc:
            return InstrumentResult(code=code, ok=False, reason=str(exc))
        try:
            page = self.fetcher.fetch(session, instrument.path)
            quote = parse_quote(page.text, code, page.tokens)
        except FetchError as exc:
            return InstrumentResult(code=code, ok=False, reason=str(exc), fatal=exc.fatal)
        except ParseError as exc:
            return InstrumentResult(code=code, ok=False, reason=str(exc))
        except Exception as exc:
            # unknown engine state; treat like a navigation failure
            return InstrumentResult(code=code, ok=False, reason=f"unexpected: {exc}", fatal=True)
        return InstrumentResult(code=code, ok=True, quote=quote)

    def run_once(self) -> dict:
        with self._pass_lock:
            return self._run_pass()

    def _run_pass(self) -> dict:
        started = time.perf_counter()
        self.state = RUNNING
        self._log("fetch...")
        rates: dict[str, Quote] = {}
        fetched = 0
        fallbacks = 0
        relaunches = 0

        for instrument in self.instruments:
            result = self.resolve_instrument(instrument)
            if result.ok and result.quote is not None:
                quote = result.quote
                fetched += 1
                self._log(f"OK {result.code}: {quote.buy}/{quote.sell} spot={quote.spot}")
            else:
                self.last_error = result.reason
                self._log(f"FAIL {result.code}: {result.reason}")
                if result.fatal:
                    self.session_manager.mark_dead()
                    relaunches += 1
                    self._relaunch()
                quote = self.rate_cache.fallback_for(result.code)
                fallbacks += 1
            rates[result.code] = quote

        for peg in self.pegs:
            rates[peg.code] = derive_peg(rates.get(peg.base), peg.ratio)
            self._log(f"OK {peg.code}: {rates[peg.code].spot} (peg {peg.base}/{peg.code})")

        snapshot = self.rate_cache.publish(rates)
        self.state = PUBLISHED
        self.last_pass_ms = int((time.perf_counter() - started) * 1000)
        self._metrics["passes"] += 1
        self._metrics["fetched"] += fetched
        self._metrics["fallbacks"] += fallbacks
        self._log("fetch done")
        print(
            "[REFRESH][pass_done] "
            f"fetched={fetched} fallbacks={fallbacks} relaunches={relaunches} "
            f"elapsed_ms={self.last_pass_ms}",
            flush=True,
        )
        return {
            "fetched": fetched,
            "fallbacks": fallbacks,
            "relaunches": relaunches,
            "updated_at": snapshot.updated_at,
        }

    def trigger(self) -> dict:
        return self.run_once()

    def _tick(self) -> None:
        try:
            self.run_once()
        except Exception as exc:
            self._metrics["pass_errors"] += 1
            self.last_error = str(exc)
            self.state = IDLE
            self._log(f"pass error: {exc}")
            self._relaunch()

    def _loop(self) -> None:
        try:
            if self._stop_event.wait(self.warmup_sec):
                return
            while not self._stop_event.is_set():
                self._tick()
                if self._stop_event.wait(self.interval_sec):
                    break
        finally:
            # playwright's sync objects must be closed on the thread that made them
            self.session_manager.terminate()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name="refresh-worker")
        self._thread.start()
        print(
            f"[REFRESH][worker_start] interval_sec={self.interval_sec} warmup_sec={self.warmup_sec}",
            flush=True,
        )

    def stop(self) -> bool:
        """Signal the worker and wait for the running pass to finish.

        Returns False when the worker is still busy after ``join_timeout_sec``;
        its session is then closed only when that pass ends.
        """
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=self.join_timeout_sec)
            if self._thread.is_alive():
                print(
                    f"[REFRESH][worker_stop_timeout] join_timeout_sec={self.join_timeout_sec} state={self.state}",
                    flush=True,
                )
                return False
        print("[REFRESH][worker_stop]", flush=True)
        return True

    def metrics(self) -> dict:
        return {
            **self._metrics,
            "state": self.state,
            "last_pass_ms": self.last_pass_ms,
            "last_error": self.last_error,
            "session_alive": self.session_manager.is_alive(),
        }
