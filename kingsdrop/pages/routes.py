"""Classify a URL into one of the automated Kinguin page types.

Actual Kinguin URLs:

- Checkout: ``https://www.kinguin.net/new-checkout/review``
- Game page: ``https://www.kinguin.net/category/<id>/<name>``
- Dashboard: ``https://www.kinguin.net/app/dashboard/subscription``
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Pattern, Sequence, Tuple


class PageType(str, Enum):
    CHECKOUT = "checkout"
    GAME_PAGE = "game-page"
    DASHBOARD = "dashboard"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Route:
    type: PageType
    pattern: Pattern[str]
    description: str

    def matches(self, url: str) -> bool:
        return self.pattern.search(url) is not None


def route(page_type: PageType, pattern: str, description: str) -> Route:
    return Route(page_type, re.compile(pattern, re.IGNORECASE), description)


# Order matters: first match wins.
ROUTE_PATTERNS: Tuple[Route, ...] = (
    route(
        PageType.CHECKOUT,
        r"^https?://(www\.)?kinguin\.net/new-checkout/review",
        "Checkout review page",
    ),
    route(
        PageType.DASHBOARD,
        r"^https?://(www\.)?kinguin\.net/app/dashboard/subscription",
        "Dashboard subscription page",
    ),
    route(
        PageType.GAME_PAGE,
        r"^https?://(www\.)?kinguin\.net/category/\d+/.+",
        "Game product page",
    ),
)

UNKNOWN_DESCRIPTION = "Unknown page"


def match_route(url: str, routes: Sequence[Route] = ROUTE_PATTERNS) -> Optional[Route]:
    for candidate in routes:
        if candidate.matches(url):
            return candidate
    return None


def detect_page_type(url: str, routes: Sequence[Route] = ROUTE_PATTERNS) -> PageType:
    """Return the type of the first route matching ``url``."""
    matched = match_route(url, routes)
    return matched.type if matched else PageType.UNKNOWN


def get_route_description(url: str, routes: Sequence[Route] = ROUTE_PATTERNS) -> str:
    matched = match_route(url, routes)
    return matched.description if matched else UNKNOWN_DESCRIPTION


__all__ = [
    "PageType",
    "ROUTE_PATTERNS",
    "Route",
    "UNKNOWN_DESCRIPTION",
    "detect_page_type",
    "get_route_description",
    "match_route",
    "route",
]
