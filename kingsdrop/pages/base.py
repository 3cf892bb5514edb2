"""Shared plumbing for the page handlers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable

from ..browser.dom import Document
from ..browser.locator import Locator
from ..browser.overlay import Notifier
from ..browser.simulation import Simulator
from ..settings import Preferences


@dataclass
class PageContext:
    """Everything a handler needs to automate one page load."""

    document: Document
    locator: Locator
    simulator: Simulator
    notifier: Notifier
    preferences: Preferences = field(default_factory=Preferences)
    stabilize_ms: int = 500


PageHandler = Callable[[PageContext], Awaitable[bool]]

__all__ = ["PageContext", "PageHandler"]
