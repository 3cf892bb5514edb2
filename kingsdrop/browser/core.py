"""Playwright lifecycle around the page automation engine.

:class:`AutomationSession` owns one Chromium instance and (by default) one
persistent page.  ``run(url)`` navigates there, waits for the document to
be ready, and hands the page to the :class:`~kingsdrop.pages.PageDispatcher`
exactly once, the way the userscript ran once per page load.
"""

from __future__ import annotations

import logging
import random
from contextlib import AbstractAsyncContextManager
from typing import Any, Dict, Mapping, Optional, Sequence

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from ..config import AgentConfig
from ..pages import PageContext, PageDispatcher
from ..settings import JsonFileStore, PreferenceStore
from .dom import PlaywrightDocument
from .locator import Locator, create_strategy
from .overlay import PageOverlay
from .simulation import Simulator

ALLOWED_WAIT_STATES = {"load", "domcontentloaded", "networkidle"}

# Args that minimise automation fingerprints when launching a browser.
DEFAULT_LAUNCH_ARGS: tuple[str, ...] = (
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--disable-extensions",
    "--disable-background-networking",
    "--disable-renderer-backgrounding",
)

logger = logging.getLogger(__name__)


class AutomationSession(AbstractAsyncContextManager["AutomationSession"]):
    """Drive Chromium pages through the locate/simulate engine."""

    def __init__(
        self,
        *,
        config: Optional[AgentConfig] = None,
        preferences: Optional[PreferenceStore] = None,
        dispatcher: Optional[PageDispatcher] = None,
        launch_args: Optional[Sequence[str]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config or AgentConfig()
        self._preferences = preferences or PreferenceStore(JsonFileStore(self._config.settings_path))
        self._dispatcher = dispatcher or PageDispatcher()
        self._launch_args = tuple(DEFAULT_LAUNCH_ARGS if launch_args is None else launch_args)
        self._rng = rng
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._document: PlaywrightDocument | None = None

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def preferences(self) -> PreferenceStore:
        return self._preferences

    # ------------------------------------------------------------------ #
    # Lifecycle helpers
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> "AutomationSession":
        await self.startup()
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.shutdown()

    async def startup(self) -> None:
        """Ensure a Chromium instance is available."""
        if self._playwright is not None:
            return
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self._config.headless,
            args=list(self._launch_args),
        )

    async def shutdown(self) -> None:
        """Close Chromium and release Playwright resources."""
        await self._close_page()
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    async def run(self, url: str, *, wait_until: str = "domcontentloaded") -> Dict[str, Any]:
        """Open ``url`` and run the matching page handler once."""
        target = (url or "").strip()
        if not target:
            raise ValueError("url must be a non-empty string.")
        wait_state = self._validate_wait_state(wait_until)
        self._log_call("run", url=target, wait_until=wait_state)
        page = await self._ensure_page()
        if self._urls_differ(page.url, target):
            await page.goto(target, wait_until=wait_state)
        await page.wait_for_load_state(wait_state)
        result = await self.run_on_page(page)
        self._log_result("run", result)
        return result

    async def run_on_page(self, page: Page) -> Dict[str, Any]:
        """Dispatch the handler for an already-loaded ``page``."""
        ctx = self.build_context(page)
        outcome = await self._dispatcher.dispatch(page.url, ctx)
        return {
            "final_url": page.url,
            "title": await page.title(),
            **outcome.as_dict(),
        }

    def build_context(self, page: Page) -> PageContext:
        """Wire the locator, simulator and overlay for ``page``."""
        document = self._document_for(page)
        locator = Locator(
            document,
            strategy=create_strategy(self._config.locate_strategy),
            default_timeout_ms=self._config.default_timeout_ms,
            default_poll_interval_ms=self._config.poll_interval_ms,
        )
        return PageContext(
            document=document,
            locator=locator,
            simulator=Simulator(rng=self._rng),
            notifier=PageOverlay(page),
            preferences=self._preferences.load(),
            stabilize_ms=self._config.stabilize_ms,
        )

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    async def _ensure_browser(self) -> Browser:
        await self.startup()
        if self._browser is None:
            raise RuntimeError("Playwright failed to launch Chromium.")
        return self._browser

    async def _ensure_page(self) -> Page:
        if self._page is not None and not self._page.is_closed():
            return self._page
        browser = await self._ensure_browser()
        await self._close_page()
        self._context = await browser.new_context()
        self._context.set_default_timeout(self._config.default_timeout_ms)
        self._page = await self._context.new_page()
        self._document = PlaywrightDocument(self._page)
        return self._page

    async def _close_page(self) -> None:
        if self._page is not None:
            try:
                if not self._page.is_closed():
                    await self._page.close()
            except Exception as exc:
                logger.debug("Ignoring error while closing page: %s", exc)
            finally:
                self._page = None
                self._document = None
        if self._context is not None:
            try:
                await self._context.close()
            except Exception as exc:
                logger.debug("Ignoring error while closing context: %s", exc)
            finally:
                self._context = None

    def _document_for(self, page: Page) -> PlaywrightDocument:
        # The mutation binding can be exposed only once per page, so every
        # run on the same page shares one document.
        if self._document is None or self._document.page is not page:
            self._document = PlaywrightDocument(page)
        return self._document

    def _validate_wait_state(self, wait_until: str) -> str:
        if wait_until not in ALLOWED_WAIT_STATES:
            allowed = ", ".join(sorted(ALLOWED_WAIT_STATES))
            raise ValueError(f"wait_until must be one of {{{allowed}}}.")
        return wait_until

    def _urls_differ(self, current: str, target: str) -> bool:
        if not current:
            return True
        if current == target:
            return False
        return current.rstrip("/") != target.rstrip("/")

    def _log_call(self, action: str, **kwargs: Any) -> None:
        logger.info("%s call: %s", action, {k: v for k, v in kwargs.items() if v is not None})

    def _log_result(self, action: str, result: Mapping[str, Any]) -> None:
        logger.info("%s result: %s", action, dict(result))


def create_session(
    *,
    config: Optional[AgentConfig] = None,
    preferences: Optional[PreferenceStore] = None,
) -> AutomationSession:
    """Factory helper used by the CLI and the MCP server."""
    return AutomationSession(config=config, preferences=preferences)


__all__ = ["AutomationSession", "DEFAULT_LAUNCH_ARGS", "create_session"]
