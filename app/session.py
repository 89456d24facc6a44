"""
Verification Session Module
Owns the state of one verification page (one browser tab): the form input,
the rate limiter, the loaded dataset and the scheduled callbacks.

Everything runs on a single asyncio event loop. The only suspension points
are the dataset load and the artificial result delay, and the session marks
itself busy before reaching either, so two submissions never race on the
limiter.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from app.certificate_store import CertificateStore
from app.config import Settings
from app.deep_link import StartupParameters, build_share_url, canonical_url, parse_startup_parameters
from app.errors import ClipboardError, LoadError, RateLimitError, ValidationError
from app.presenter import Presenter
from app.rate_limiter import RateLimiter
from app.verification import Verified, VerificationEngine, VerificationResult, normalize_query

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load certificate data. Please refresh the page."

Clipboard = Callable[[str], Awaitable[None]]


class VerificationSession:
    """One verification page and everything it owns"""

    def __init__(
        self,
        store: CertificateStore,
        presenter: Presenter,
        settings: Settings,
        clock: Callable[[], float] = time.monotonic,
        tick_seconds: float = 1.0,
    ):
        """
        Initialize the session

        Args:
            store: Dataset shared read-only by every session
            presenter: Rendering layer driven by this session
            settings: Limits, delays and event metadata
            clock: Monotonic clock for the rate limiter
            tick_seconds: Real time between cooldown ticks
        """
        self.store = store
        self.presenter = presenter
        self.settings = settings
        self.tick_seconds = tick_seconds
        self.limiter = RateLimiter(
            max_attempts=settings.max_attempts,
            cooldown_seconds=settings.cooldown_seconds,
            clock=clock,
        )

        self.engine: Optional[VerificationEngine] = None
        self.page_url = ""
        self.input_value = ""
        self.loading = False
        self.last_result: Optional[VerificationResult] = None

        self._cooldown_task: Optional[asyncio.Task] = None
        self._auto_task: Optional[asyncio.Task] = None

    @property
    def ready(self) -> bool:
        return self.engine is not None

    @property
    def submit_enabled(self) -> bool:
        return self.ready and not self.loading and not self.limiter.state.cooldown_active

    def _refresh_submit(self) -> None:
        self.presenter.set_submit_enabled(self.submit_enabled)

    async def start(self, url: str) -> Optional[StartupParameters]:
        """
        Load the dataset and apply deep-link parameters from ``url``

        Returns:
            The parsed startup parameters, or None if the dataset failed to load
        """
        self.page_url = url
        try:
            records = self.store.records if self.store.loaded else await self.store.load()
        except LoadError as e:
            logger.warning("Session cannot verify, dataset unavailable: %s", e)
            self.presenter.show_fatal_error(LOAD_FAILED_MESSAGE)
            self._refresh_submit()
            return None

        self.engine = VerificationEngine(records)
        self._refresh_submit()
        return self.handle_deep_link(url)

    def handle_deep_link(self, url: str) -> StartupParameters:
        """Prefill from the URL, schedule auto-verify, and clean the URL"""
        params = parse_startup_parameters(url)
        if params.prefill_id is None:
            return params

        self.set_input(params.prefill_id)

        if params.auto_trigger:
            self._auto_task = asyncio.create_task(self._auto_submit())

        # Reloading the clean URL must not verify again.
        self.page_url = canonical_url(url)
        self.presenter.replace_url(self.page_url)
        return params

    async def _auto_submit(self) -> None:
        await asyncio.sleep(self.settings.auto_trigger_delay_seconds)
        await self.submit()

    def set_input(self, value: str) -> str:
        """Update the input field; the ID is uppercased as it is typed"""
        self.input_value = (value or "").upper()
        self.presenter.set_input(self.input_value)
        return self.input_value

    def share_url(self, certificate_id: str) -> str:
        return build_share_url(self.page_url, certificate_id)

    async def submit(self, value: Optional[str] = None) -> Optional[VerificationResult]:
        """
        Handle a form submission

        Args:
            value: New input value, if the submission carries one

        Returns:
            The verification result, or None when the attempt was refused
        """
        if value is not None:
            self.set_input(value)

        if not self.ready:
            self.presenter.show_fatal_error(LOAD_FAILED_MESSAGE)
            return None
        if self.loading:
            # The submit control is disabled while a request is in flight.
            return None

        try:
            self.limiter.check()
        except RateLimitError as e:
            self._start_cooldown(e.remaining_seconds)
            return None

        if self._cooldown_task is not None and not self._cooldown_task.done():
            # The window ran out before the countdown did.
            self._cooldown_task.cancel()
            self.presenter.hide_cooldown()

        try:
            query = normalize_query(self.input_value)
        except ValidationError as e:
            self.presenter.show_toast(str(e), "error")
            return None

        self.limiter.attempt_submitted()
        self.loading = True
        self.presenter.show_loading(True)
        self._refresh_submit()
        self.presenter.hide_result()

        try:
            await asyncio.sleep(self.settings.result_delay_seconds)
            result = self.engine.verify(query)
        finally:
            self.loading = False
            self.presenter.show_loading(False)
            self._refresh_submit()

        logger.debug("Verification of %s: %s", query, type(result).__name__)
        self.last_result = result
        share_url = self.share_url(result.record.certificate_id) if isinstance(result, Verified) else None
        self.presenter.show_result(result, share_url)
        return result

    def _start_cooldown(self, remaining_seconds: int) -> None:
        self.presenter.show_cooldown(remaining_seconds)
        self._refresh_submit()
        if self._cooldown_task is None or self._cooldown_task.done():
            self._cooldown_task = asyncio.create_task(self._run_cooldown())

    async def _run_cooldown(self) -> None:
        while self.limiter.state.cooldown_active:
            await asyncio.sleep(self.tick_seconds)
            remaining = self.limiter.tick_elapsed()
            if remaining > 0:
                self.presenter.show_cooldown(remaining)

        self.presenter.hide_cooldown()
        self._refresh_submit()

    async def copy_share_link(self, clipboard: Clipboard) -> bool:
        """
        Copy the share link of the last verified certificate

        Args:
            clipboard: Coroutine writing text to the clipboard; raises ClipboardError on failure

        Returns:
            True if the link was copied
        """
        if not isinstance(self.last_result, Verified):
            return False

        url = self.share_url(self.last_result.record.certificate_id)
        try:
            await clipboard(url)
        except ClipboardError as e:
            logger.warning("Failed to copy share link: %s", e)
            self.presenter.show_toast("Failed to copy link", "error")
            return False

        self.presenter.show_toast("Link copied to clipboard!", "success")
        return True

    def reset(self) -> None:
        """Clear the form and result to verify another certificate"""
        self.set_input("")
        self.last_result = None
        self.presenter.hide_result()

    def close(self) -> None:
        """Cancel pending timers when the page goes away"""
        for task in (self._auto_task, self._cooldown_task):
            if task is not None and not task.done():
                task.cancel()
