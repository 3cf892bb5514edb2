"""Route a page load to its handler and contain whatever goes wrong."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence

from .base import PageContext, PageHandler
from .checkout import init_checkout_page
from .dashboard import init_dashboard_page
from .game_page import init_game_page
from .routes import ROUTE_PATTERNS, PageType, Route, detect_page_type, get_route_description

logger = logging.getLogger(__name__)

PAGE_HANDLERS: Mapping[PageType, PageHandler] = {
    PageType.CHECKOUT: init_checkout_page,
    PageType.GAME_PAGE: init_game_page,
    PageType.DASHBOARD: init_dashboard_page,
}


@dataclass(frozen=True)
class DispatchOutcome:
    url: str
    page_type: PageType
    description: str
    handled: bool = False
    success: Optional[bool] = None
    error: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "page_type": self.page_type.value,
            "description": self.description,
            "handled": self.handled,
            "success": self.success,
            "error": self.error,
        }


class PageDispatcher:
    """Run at most one handler per page load.

    This is the only place handler exceptions are caught: they are logged,
    shown to the operator as a short-lived overlay, and end the attempt.
    """

    def __init__(
        self,
        handlers: Optional[Mapping[PageType, PageHandler]] = None,
        *,
        routes: Sequence[Route] = ROUTE_PATTERNS,
    ) -> None:
        self._handlers: Dict[PageType, PageHandler] = dict(
            PAGE_HANDLERS if handlers is None else handlers
        )
        self._routes = tuple(routes)

    def classify(self, url: str) -> PageType:
        return detect_page_type(url, self._routes)

    async def dispatch(self, url: str, ctx: PageContext) -> DispatchOutcome:
        page_type = self.classify(url)
        description = get_route_description(url, self._routes)
        logger.info("Page detected: %s (%s)", page_type.value, description)
        logger.info("URL: %s", url)

        handler = self._handlers.get(page_type)
        if handler is None:
            logger.info("No handler registered for page type: %s", page_type.value)
            if page_type is not PageType.UNKNOWN:
                await ctx.notifier.notify(
                    f"KingsDrop: {description} (handler pending)", level="info", auto_remove_ms=3000
                )
            return DispatchOutcome(url, page_type, description)

        logger.info("Running %s handler", page_type.value)
        try:
            success = await handler(ctx)
        except Exception as exc:
            logger.exception("Error in %s handler: %s", page_type.value, exc)
            await self._report_error(ctx, exc)
            return DispatchOutcome(url, page_type, description, handled=True, success=False, error=str(exc))

        logger.info("%s handler finished: success=%s", page_type.value, success)
        return DispatchOutcome(url, page_type, description, handled=True, success=bool(success))

    async def _report_error(self, ctx: PageContext, exc: Exception) -> None:
        try:
            await ctx.notifier.notify(f"Error: {exc}", level="error", auto_remove_ms=5000)
        except Exception as notify_exc:
            # The page may be gone (navigation, closed tab); the log has it.
            logger.warning("Could not display error overlay: %s", notify_exc)


__all__ = ["DispatchOutcome", "PAGE_HANDLERS", "PageDispatcher"]
