"""Element discovery and interaction simulation.

:mod:`kingsdrop.browser.core` (the Playwright session) is not imported here
because it depends on :mod:`kingsdrop.pages`, which depends on this package.
"""

from .dom import Document, ElementHandle, PlaywrightDocument, PlaywrightElement
from .events import BoundingBox, InteractionEvent
from .locator import (
    LocateRequest,
    LocateResult,
    Locator,
    MutationStrategy,
    PollingStrategy,
    Query,
    create_strategy,
)
from .overlay import Notifier, PageOverlay
from .simulation import Simulator
from .timing import human_delay, random_delay, sleep

__all__ = [
    "BoundingBox",
    "Document",
    "ElementHandle",
    "InteractionEvent",
    "LocateRequest",
    "LocateResult",
    "Locator",
    "MutationStrategy",
    "Notifier",
    "PageOverlay",
    "PlaywrightDocument",
    "PlaywrightElement",
    "PollingStrategy",
    "Query",
    "Simulator",
    "create_strategy",
    "human_delay",
    "random_delay",
    "sleep",
]
