"""Per-page automation recipes and the router that picks one."""

from .base import PageContext, PageHandler
from .dispatch import PAGE_HANDLERS, DispatchOutcome, PageDispatcher
from .routes import PageType, detect_page_type, get_route_description

__all__ = [
    "DispatchOutcome",
    "PAGE_HANDLERS",
    "PageContext",
    "PageDispatcher",
    "PageHandler",
    "PageType",
    "detect_page_type",
    "get_route_description",
]
